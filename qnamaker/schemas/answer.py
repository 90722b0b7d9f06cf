"""问答（generateAnswer）相关的请求/响应模型"""

from pydantic import Field

from qnamaker.schemas.base import WireModel
from qnamaker.schemas.kb import MetadataItem


class GenerateAnswerRequest(WireModel):
    """问答请求

    示例:
    ```json
    {
        "question": "如何重置密码",
        "top": 3,
        "scoreThreshold": 30,
        "strictFilters": [{"name": "category", "value": "account"}]
    }
    ```
    """
    question: str = Field(..., min_length=1, description="用户输入")
    top: int | None = Field(default=None, ge=1, description="返回答案数量")
    user_id: str | None = None
    is_test: bool | None = Field(default=None, description="查询测试版（未发布）知识库")
    score_threshold: float | None = Field(default=None, ge=0, le=100)
    strict_filters: list[MetadataItem] | None = None
    qna_id: str | None = Field(default=None, description="直接按 QnA ID 取答案")


class QnASearchResult(WireModel):
    """单个候选答案"""
    questions: list[str] = Field(default_factory=list)
    answer: str
    score: float
    id: int | None = None
    source: str | None = None
    metadata: list[MetadataItem] = Field(default_factory=list)


class GenerateAnswerResponse(WireModel):
    """问答响应"""
    answers: list[QnASearchResult] = Field(default_factory=list)
