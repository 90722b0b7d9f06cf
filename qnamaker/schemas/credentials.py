"""知识库句柄与凭据

服务端用两套不同的请求头授权查询流量和管理流量：
- 查询：Authorization: EndpointKey <endpoint_key>
- 管理：Ocp-Apim-Subscription-Key: <subscription_key>

同一个句柄只能持有其中一种凭据。
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from qnamaker.exceptions import CredentialError


class KnowledgeBaseHandle(BaseModel):
    """知识库 ID + 访问凭据"""

    model_config = ConfigDict(frozen=True)

    kb_id: str = Field(..., min_length=1, description="知识库 ID")
    endpoint_key: str | None = Field(default=None, repr=False, description="查询凭据（已发布知识库）")
    subscription_key: str | None = Field(default=None, repr=False, description="管理凭据")

    @model_validator(mode="after")
    def ensure_single_credential(self):
        if self.endpoint_key and self.subscription_key:
            raise ValueError("endpoint_key 与 subscription_key 不能同时提供")
        if not self.endpoint_key and not self.subscription_key:
            raise ValueError("endpoint_key 或 subscription_key 必须提供其一")
        return self

    @classmethod
    def for_query(cls, kb_id: str, endpoint_key: str) -> "KnowledgeBaseHandle":
        return cls(kb_id=kb_id, endpoint_key=endpoint_key)

    @classmethod
    def for_management(cls, kb_id: str, subscription_key: str) -> "KnowledgeBaseHandle":
        return cls(kb_id=kb_id, subscription_key=subscription_key)

    def require_endpoint_key(self) -> str:
        if not self.endpoint_key:
            raise CredentialError(f"知识库 {self.kb_id} 的句柄没有 endpoint key，无法调用查询接口")
        return self.endpoint_key

    def require_subscription_key(self) -> str:
        if not self.subscription_key:
            raise CredentialError(f"知识库 {self.kb_id} 的句柄没有 subscription key，无法调用管理接口")
        return self.subscription_key
