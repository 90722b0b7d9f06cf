"""模型基类：Python 侧使用 snake_case，线上 JSON 使用 camelCase"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """QnA Maker 请求/响应模型基类"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """序列化为请求体（camelCase，省略未设置的可选字段）"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
