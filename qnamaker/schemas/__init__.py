"""
数据模式层 (Schemas)

使用 Pydantic 定义 QnA Maker API 的请求和响应模型：
- Python 侧字段为 snake_case，线上 JSON 为 camelCase
- 响应中的未知字段忽略，服务端新增字段不会破坏反序列化
"""

from qnamaker.schemas.answer import GenerateAnswerRequest, GenerateAnswerResponse, QnASearchResult
from qnamaker.schemas.credentials import KnowledgeBaseHandle
from qnamaker.schemas.kb import (
    CreateKBRequest,
    FileSource,
    KnowledgeBaseDetails,
    MetadataItem,
    QnAItem,
    UpdateKBAdd,
    UpdateKBDelete,
    UpdateKBRequest,
    UpdateKBUpdate,
    UpdateQnAItem,
)
from qnamaker.schemas.operation import (
    ErrorDetail,
    ErrorResponse,
    OperationDescriptor,
    OperationState,
    is_operation_successful,
)

__all__ = [
    "CreateKBRequest",
    "ErrorDetail",
    "ErrorResponse",
    "FileSource",
    "GenerateAnswerRequest",
    "GenerateAnswerResponse",
    "KnowledgeBaseDetails",
    "KnowledgeBaseHandle",
    "MetadataItem",
    "OperationDescriptor",
    "OperationState",
    "QnAItem",
    "QnASearchResult",
    "UpdateKBAdd",
    "UpdateKBDelete",
    "UpdateKBRequest",
    "UpdateKBUpdate",
    "UpdateQnAItem",
    "is_operation_successful",
]
