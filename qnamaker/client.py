"""
QnA Maker Python 客户端

把 RequestDispatcher 与 OperationTracker 组合成面向知识库的客户端：
- 查询模式：for_query(host_url, kb_id, endpoint_key)，用于 generate_answer
- 管理模式：for_management(kb_id, subscription_key)，用于 update / publish / 详情 / 操作状态
- 创建模式：for_creation(subscription_key)，用于 create

使用示例：
    ```python
    from qnamaker import QnAMakerClient, CreateKBRequest

    async with QnAMakerClient.for_creation("sub-key") as client:
        kb_id = await client.create_kb_and_wait(CreateKBRequest(name="FAQ"))

    async with QnAMakerClient.for_management(kb_id, "sub-key") as client:
        await client.publish_kb_and_wait()

    async with QnAMakerClient.for_query(host_url, kb_id, endpoint_key) as client:
        result = await client.generate_answer(GenerateAnswerRequest(question="hi"))
    ```
"""

from __future__ import annotations

import logging

import httpx

from qnamaker.config import get_settings
from qnamaker.dispatcher import RequestDispatcher
from qnamaker.exceptions import CredentialError, MalformedOperationStatus
from qnamaker.schemas import (
    CreateKBRequest,
    GenerateAnswerRequest,
    GenerateAnswerResponse,
    KnowledgeBaseDetails,
    KnowledgeBaseHandle,
    OperationDescriptor,
    UpdateKBRequest,
)
from qnamaker.tracker import OperationTracker

logger = logging.getLogger(__name__)


class QnAMakerClient:
    """QnA Maker 知识库客户端"""

    def __init__(
        self,
        *,
        kb_id: str | None = None,
        host_url: str | None = None,
        endpoint_key: str | None = None,
        subscription_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        dispatcher: RequestDispatcher | None = None,
        poll_timeout: float | None = None,
    ):
        """
        一般通过 for_query / for_management / for_creation 构造。

        Args:
            kb_id: 知识库 ID（创建模式下为空）
            host_url: 运行时地址（仅查询模式）
            endpoint_key: 查询凭据
            subscription_key: 管理凭据
            http_client: 共享的 httpx.AsyncClient
            dispatcher: 直接注入分发器，与 http_client 互斥
            poll_timeout: 等待操作完成的默认超时（秒），默认读取配置
        """
        if dispatcher is not None and http_client is not None:
            raise ValueError("dispatcher 与 http_client 不能同时提供")
        for name, value in (("endpoint_key", endpoint_key), ("subscription_key", subscription_key)):
            if value is not None and not value.strip():
                raise CredentialError(f"{name} 不能为空")
        if endpoint_key and subscription_key:
            raise CredentialError("endpoint_key 与 subscription_key 不能同时提供")
        if kb_id and not (endpoint_key or subscription_key):
            raise CredentialError("绑定知识库时需要 endpoint_key 或 subscription_key")

        self.kb_id = kb_id
        self.host_url = host_url
        self._endpoint_key = endpoint_key
        self._subscription_key = subscription_key
        self._owns_dispatcher = dispatcher is None
        self._dispatcher = dispatcher or RequestDispatcher(http_client)
        self.poll_timeout = poll_timeout if poll_timeout is not None else get_settings().poll_timeout_seconds
        self._tracker = (
            OperationTracker(self._dispatcher, subscription_key) if subscription_key else None
        )

    @classmethod
    def for_query(cls, host_url: str, kb_id: str, endpoint_key: str, **kwargs) -> "QnAMakerClient":
        """查询已发布知识库"""
        return cls(kb_id=kb_id, host_url=host_url, endpoint_key=endpoint_key, **kwargs)

    @classmethod
    def for_management(cls, kb_id: str, subscription_key: str, **kwargs) -> "QnAMakerClient":
        """管理已有知识库（update / publish / 详情）"""
        return cls(kb_id=kb_id, subscription_key=subscription_key, **kwargs)

    @classmethod
    def for_creation(cls, subscription_key: str, **kwargs) -> "QnAMakerClient":
        """创建新知识库"""
        return cls(subscription_key=subscription_key, **kwargs)

    @property
    def handle(self) -> KnowledgeBaseHandle:
        if not self.kb_id:
            raise CredentialError("客户端未绑定知识库 ID")
        return KnowledgeBaseHandle(
            kb_id=self.kb_id,
            endpoint_key=self._endpoint_key,
            subscription_key=self._subscription_key,
        )

    @property
    def tracker(self) -> OperationTracker:
        if self._tracker is None:
            raise CredentialError("等待操作完成需要 subscription key")
        return self._tracker

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------
    async def generate_answer(self, request: GenerateAnswerRequest) -> GenerateAnswerResponse:
        if not self.host_url:
            raise CredentialError("查询模式需要 host_url")
        return await self._dispatcher.generate_answer(self.host_url, self.handle, request)

    # ------------------------------------------------------------------
    # 管理
    # ------------------------------------------------------------------
    async def create_kb(self, request: CreateKBRequest) -> OperationDescriptor:
        if not self._subscription_key:
            raise CredentialError("创建知识库需要 subscription key")
        return await self._dispatcher.create_kb(request, subscription_key=self._subscription_key)

    async def update_kb(self, request: UpdateKBRequest) -> OperationDescriptor:
        return await self._dispatcher.update_kb(self.handle, request)

    async def publish_kb(self) -> OperationDescriptor:
        return await self._dispatcher.publish_kb(self.handle)

    async def get_kb_details(self) -> KnowledgeBaseDetails:
        return await self._dispatcher.get_kb_details(self.handle)

    async def get_operation_details(self, operation_id: str) -> OperationDescriptor:
        if not self._subscription_key:
            raise CredentialError("查询操作状态需要 subscription key")
        return await self._dispatcher.get_operation_details(operation_id, subscription_key=self._subscription_key)

    async def await_operation_completion_state(
        self,
        descriptor: OperationDescriptor,
        *,
        timeout: float | None = None,
    ) -> str:
        """等待操作结束并返回终态字符串"""
        return await self.tracker.await_completion(
            descriptor,
            timeout=timeout if timeout is not None else self.poll_timeout,
        )

    def is_operation_successful(self, operation_state: str | None) -> bool:
        return OperationTracker.is_operation_successful(operation_state)

    # ------------------------------------------------------------------
    # 提交 + 等待
    # ------------------------------------------------------------------
    async def create_kb_and_wait(self, request: CreateKBRequest, *, timeout: float | None = None) -> str:
        """
        创建知识库并等待完成

        Returns:
            新知识库的 ID（从最终状态的 resourceLocation 中解析）
        """
        descriptor = await self.create_kb(request)
        final = await self.tracker.wait(
            descriptor,
            timeout=timeout if timeout is not None else self.poll_timeout,
        )
        kb_id = final.knowledge_base_id
        if not kb_id:
            raise MalformedOperationStatus(final)
        logger.info(f"知识库 {request.name} 创建完成: {kb_id}")
        return kb_id

    async def update_kb_and_wait(self, request: UpdateKBRequest, *, timeout: float | None = None) -> str:
        descriptor = await self.update_kb(request)
        return await self.await_operation_completion_state(descriptor, timeout=timeout)

    async def publish_kb_and_wait(self, *, timeout: float | None = None) -> str:
        descriptor = await self.publish_kb()
        return await self.await_operation_completion_state(descriptor, timeout=timeout)

    # ------------------------------------------------------------------
    # 资源管理
    # ------------------------------------------------------------------
    async def aclose(self) -> None:
        if self._owns_dispatcher:
            await self._dispatcher.aclose()

    async def __aenter__(self) -> "QnAMakerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
