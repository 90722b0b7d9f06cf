"""知识库管理相关的请求/响应模型"""

from pydantic import Field

from qnamaker.schemas.base import WireModel


class MetadataItem(WireModel):
    """QnA 元数据（name/value 对）"""
    name: str
    value: str


class QnAItem(WireModel):
    """一条问答对"""
    id: int | None = Field(default=None, description="QnA ID，新增时由服务端分配")
    answer: str
    source: str | None = None
    questions: list[str] = Field(default_factory=list)
    metadata: list[MetadataItem] = Field(default_factory=list)


class FileSource(WireModel):
    """文件来源"""
    file_name: str
    file_uri: str


class CreateKBRequest(WireModel):
    """创建知识库请求

    示例:
    ```json
    {
        "name": "FAQ",
        "qnaList": [{"id": 0, "answer": "你好", "questions": ["hi"]}],
        "urls": ["https://example.com/faq"],
        "files": []
    }
    ```
    """
    name: str = Field(..., min_length=1, description="知识库名称")
    qna_list: list[QnAItem] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)
    files: list[FileSource] = Field(default_factory=list)


class UpdateKBAdd(WireModel):
    """更新请求：新增部分"""
    qna_list: list[QnAItem] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)
    files: list[FileSource] = Field(default_factory=list)


class UpdateKBDelete(WireModel):
    """更新请求：删除部分（按 QnA ID 或来源）"""
    ids: list[int] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


class UpdateQnAItem(WireModel):
    """更新已有 QnA：增删问题和元数据"""
    id: int
    answer: str | None = None
    source: str | None = None
    questions: dict[str, list[str]] | None = Field(default=None, description='{"add": [...], "delete": [...]}')
    metadata: dict[str, list[MetadataItem]] | None = None


class UpdateKBUpdate(WireModel):
    """更新请求：修改部分"""
    name: str | None = None
    qna_list: list[UpdateQnAItem] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)


class UpdateKBRequest(WireModel):
    """更新知识库请求（PATCH 语义，只提交变更）"""
    add: UpdateKBAdd | None = None
    delete: UpdateKBDelete | None = None
    update: UpdateKBUpdate | None = None


class KnowledgeBaseDetails(WireModel):
    """知识库详情"""
    id: str
    host_name: str | None = None
    last_accessed_timestamp: str | None = None
    last_changed_timestamp: str | None = None
    last_published_timestamp: str | None = None
    name: str | None = None
    user_id: str | None = None
    urls: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
