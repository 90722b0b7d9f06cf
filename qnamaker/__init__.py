"""
QnA Maker 知识库客户端

包含以下子模块：
- dispatcher : 单次 HTTP 请求分发与统一错误
- tracker    : 异步操作轮询（限流 3 qps）
- client     : 面向知识库的组合客户端
- schemas/   : Pydantic 请求/响应模型
- infra/     : 日志、URL 处理

使用示例：
    from qnamaker import QnAMakerClient, UpdateKBRequest

    async with QnAMakerClient.for_management(kb_id, subscription_key) as client:
        state = await client.update_kb_and_wait(UpdateKBRequest(...))
"""

from qnamaker.client import QnAMakerClient
from qnamaker.dispatcher import RequestDispatcher
from qnamaker.exceptions import (
    CredentialError,
    MalformedOperationStatus,
    OperationFailed,
    OperationTimeout,
    QnAMakerError,
    RemoteCallFailed,
)
from qnamaker.schemas import (
    CreateKBRequest,
    ErrorDetail,
    GenerateAnswerRequest,
    GenerateAnswerResponse,
    KnowledgeBaseDetails,
    KnowledgeBaseHandle,
    OperationDescriptor,
    OperationState,
    UpdateKBRequest,
    is_operation_successful,
)
from qnamaker.tracker import OperationTracker

__all__ = [
    "CreateKBRequest",
    "CredentialError",
    "ErrorDetail",
    "GenerateAnswerRequest",
    "GenerateAnswerResponse",
    "KnowledgeBaseDetails",
    "KnowledgeBaseHandle",
    "MalformedOperationStatus",
    "OperationDescriptor",
    "OperationFailed",
    "OperationState",
    "OperationTimeout",
    "OperationTracker",
    "QnAMakerClient",
    "QnAMakerError",
    "RemoteCallFailed",
    "RequestDispatcher",
    "UpdateKBRequest",
    "is_operation_successful",
]
