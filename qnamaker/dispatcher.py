"""
请求分发器

每次调用只发出一次 HTTP 请求，并把结果转换为类型化的响应或统一的 RemoteCallFailed。

两类接口：
- 查询接口（generateAnswer）：地址由调用方提供的 host_url 决定，
  使用 Authorization: EndpointKey <key> 认证
- 管理接口（create/update/publish/details/operations）：固定的管理地址 + 版本前缀，
  使用 Ocp-Apim-Subscription-Key 认证

凭据随每个请求发送，不写入共享 httpx 客户端的默认请求头，
因此同一个分发器可以被多个知识库、多个协程并发复用。

使用示例：
    async with RequestDispatcher() as dispatcher:
        handle = KnowledgeBaseHandle.for_management(kb_id, subscription_key)
        descriptor = await dispatcher.publish_kb(handle)
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx

from qnamaker.config import get_settings
from qnamaker.exceptions import RemoteCallFailed
from qnamaker.infra.url_utils import join_url, normalize_base_url
from qnamaker.schemas import (
    CreateKBRequest,
    GenerateAnswerRequest,
    GenerateAnswerResponse,
    KnowledgeBaseDetails,
    KnowledgeBaseHandle,
    OperationDescriptor,
    OperationState,
    UpdateKBRequest,
)
from qnamaker.schemas.base import WireModel

logger = logging.getLogger(__name__)

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
AUTHORIZATION_HEADER = "Authorization"

METHOD_KB = "knowledgebases"
METHOD_OPERATION = "operations"

ResponseT = TypeVar("ResponseT", bound=WireModel)


class RequestDispatcher:
    """QnA Maker HTTP 请求分发器"""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        management_base_url: str | None = None,
        timeout: float | None = None,
    ):
        """
        Args:
            http_client: 共享的 httpx.AsyncClient；不传则自行创建并在 aclose() 时关闭
            management_base_url: 管理接口地址，默认读取配置
            timeout: 自建客户端的请求超时（秒），默认读取配置；传入 http_client 时不能再指定
        """
        if http_client is not None and timeout is not None:
            raise ValueError("timeout 只作用于自建客户端，请在传入的 http_client 上配置超时")
        settings = get_settings()
        self.management_base_url = (management_base_url or settings.management_base_url).rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout or settings.request_timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # 查询接口
    # ------------------------------------------------------------------
    async def generate_answer(
        self,
        host_url: str,
        handle: KnowledgeBaseHandle,
        request: GenerateAnswerRequest,
    ) -> GenerateAnswerResponse:
        """
        向已发布的知识库提问

        Args:
            host_url: 知识库运行时地址（如 https://my-qna.azurewebsites.net）
            handle: 带 endpoint key 的知识库句柄
            request: 问答请求

        Returns:
            GenerateAnswerResponse
        """
        endpoint_key = handle.require_endpoint_key()
        base = normalize_base_url(host_url)
        if not base:
            raise ValueError("host_url 不能为空")
        url = join_url(base, "qnamaker", METHOD_KB, handle.kb_id, "generateAnswer", trailing_slash=True)
        response = await self._send(
            "POST",
            url,
            headers={AUTHORIZATION_HEADER: f"EndpointKey {endpoint_key}"},
            json=request.to_wire(),
        )
        return self._parse(response, GenerateAnswerResponse)

    # ------------------------------------------------------------------
    # 管理接口
    # ------------------------------------------------------------------
    async def create_kb(self, request: CreateKBRequest, *, subscription_key: str) -> OperationDescriptor:
        """创建知识库（异步操作），返回操作描述"""
        url = join_url(self.management_base_url, METHOD_KB, "create")
        response = await self._send(
            "POST",
            url,
            headers=self._management_headers(subscription_key),
            json=request.to_wire(),
        )
        descriptor = self._parse(response, OperationDescriptor)
        logger.info(f"已提交创建知识库 {request.name}: operation={descriptor.operation_id}")
        return descriptor

    async def update_kb(self, handle: KnowledgeBaseHandle, request: UpdateKBRequest) -> OperationDescriptor:
        """更新知识库（PATCH，异步操作），返回操作描述"""
        url = join_url(self.management_base_url, METHOD_KB, handle.kb_id)
        response = await self._send(
            "PATCH",
            url,
            headers=self._management_headers(handle.require_subscription_key()),
            json=request.to_wire(),
        )
        descriptor = self._parse(response, OperationDescriptor)
        logger.info(f"已提交更新知识库 {handle.kb_id}: operation={descriptor.operation_id}")
        return descriptor

    async def publish_kb(self, handle: KnowledgeBaseHandle) -> OperationDescriptor:
        """
        发布知识库

        知识库 ID 已经在路径中，请求体为空。服务端通常以 204 无内容响应表示发布完成，
        此时返回一个状态为 Succeeded、没有 operation_id 的描述。
        """
        url = join_url(self.management_base_url, METHOD_KB, handle.kb_id)
        headers = self._management_headers(handle.require_subscription_key())
        headers["Content-Type"] = "application/json"
        response = await self._send("POST", url, headers=headers, content=b"")
        if response.status_code == 204 or not response.content:
            logger.info(f"知识库 {handle.kb_id} 已发布")
            return OperationDescriptor(operation_state=OperationState.SUCCEEDED.value)
        descriptor = self._parse(response, OperationDescriptor)
        logger.info(f"已提交发布知识库 {handle.kb_id}: operation={descriptor.operation_id}")
        return descriptor

    async def get_kb_details(self, handle: KnowledgeBaseHandle) -> KnowledgeBaseDetails:
        """获取知识库详情"""
        url = join_url(self.management_base_url, METHOD_KB, handle.kb_id)
        response = await self._send(
            "GET",
            url,
            headers=self._management_headers(handle.require_subscription_key()),
        )
        return self._parse(response, KnowledgeBaseDetails)

    async def get_operation_details(self, operation_id: str, *, subscription_key: str) -> OperationDescriptor:
        """查询异步操作的当前状态"""
        if not operation_id:
            raise ValueError("operation_id 不能为空")
        url = join_url(self.management_base_url, METHOD_OPERATION, operation_id)
        response = await self._send("GET", url, headers=self._management_headers(subscription_key))
        return self._parse(response, OperationDescriptor)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _management_headers(subscription_key: str) -> dict[str, str]:
        if not subscription_key:
            raise ValueError("subscription_key 不能为空")
        return {SUBSCRIPTION_KEY_HEADER: subscription_key}

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: Any | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """发出单次请求；非 2xx 与网络错误统一转换为 RemoteCallFailed，不做重试"""
        request = self._client.build_request(method, url, headers=headers, json=json, content=content)
        logger.debug(f"{method} {url}")
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as e:
            logger.error(f"请求失败 {method} {url}: {e}")
            raise RemoteCallFailed(
                None,
                str(e) or type(e).__name__,
                method=method,
                url=url,
            ) from e

        if not response.is_success:
            body = response.text
            logger.warning(
                f"请求返回错误 {method} {url}: {response.status_code} {response.reason_phrase}"
            )
            raise RemoteCallFailed(
                response.status_code,
                response.reason_phrase,
                method=method,
                url=url,
                body=body or None,
            )
        return response

    @staticmethod
    def _parse(response: httpx.Response, model: type[ResponseT]) -> ResponseT:
        # JSON 解析错误与 ValidationError 直接抛出：说明客户端与服务端契约不一致
        return model.model_validate(response.json())

    async def aclose(self) -> None:
        """关闭自建的 HTTP 客户端；外部传入的客户端由调用方负责关闭"""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "RequestDispatcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
