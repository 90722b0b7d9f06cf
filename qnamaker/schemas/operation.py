"""异步操作相关的响应模型

create / update / publish 由服务端异步执行，立即返回一个操作描述：

```json
{
    "operationState": "NotStarted",
    "createdTimestamp": "2018-03-19T07:38:46Z",
    "lastActionTimestamp": "2018-03-19T07:39:29Z",
    "userId": "86bb8390-56c0-42c2-9f81-3de161981191",
    "operationId": "03a4f4ce-30a6-4ec6-b436-02bcdf6153e1"
}
```

失败时额外携带 errorResponse.error（code / message / details）。
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from qnamaker.schemas.base import WireModel

_KB_RESOURCE_PATTERN = re.compile(r"/knowledgebases/([^/?#]+)")


class OperationState(str, Enum):
    """操作状态"""
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationState.SUCCEEDED, OperationState.FAILED)


def is_operation_successful(operation_state: str | None) -> bool:
    """操作状态是否为成功（仅 "Succeeded" 视为成功）"""
    return operation_state == OperationState.SUCCEEDED.value


class ErrorDetail(WireModel):
    """服务端返回的错误信息"""
    code: str | None = None
    message: str | None = None
    target: str | None = None
    details: list[str] = Field(default_factory=list, description="子错误，保持服务端顺序")

    @field_validator("details", mode="before")
    @classmethod
    def flatten_details(cls, value: Any) -> Any:
        # 部分接口的 details 是嵌套的错误对象，取其 message
        if value is None:
            return []
        if isinstance(value, list):
            return [
                (item.get("message") or item.get("code") or str(item)) if isinstance(item, dict) else item
                for item in value
            ]
        return value

    def describe(self) -> str:
        """格式化为单条可读消息：错误码、错误信息、子错误（逐行）"""
        details = "\n".join(self.details)
        return (
            f"Error Code: {self.code}\n"
            f"Error Message: {self.message}\n"
            f"Error Details: {details}"
        )


class ErrorResponse(WireModel):
    """错误信息外层包装"""
    error: ErrorDetail | None = None


class OperationDescriptor(WireModel):
    """异步操作描述

    不可变：每次状态查询都整体替换为新的实例，不做局部更新。
    operation_state 保留服务端原始字符串，未知状态也能原样上报。
    """

    model_config = ConfigDict(frozen=True)

    operation_id: str | None = None
    operation_state: str | None = None
    created_timestamp: str | None = None
    last_action_timestamp: str | None = None
    resource_location: str | None = None
    user_id: str | None = None
    error_response: ErrorResponse | None = None

    @property
    def state(self) -> OperationState | None:
        """识别出的状态，无法识别时为 None"""
        try:
            return OperationState(self.operation_state)
        except ValueError:
            return None

    @property
    def is_in_progress(self) -> bool:
        return self.state in (OperationState.NOT_STARTED, OperationState.RUNNING)

    @property
    def is_terminal(self) -> bool:
        state = self.state
        return state is not None and state.is_terminal

    @property
    def succeeded(self) -> bool:
        return is_operation_successful(self.operation_state)

    @property
    def error(self) -> ErrorDetail | None:
        if self.error_response is None:
            return None
        return self.error_response.error

    @property
    def knowledge_base_id(self) -> str | None:
        """从 resourceLocation（/knowledgebases/{kbId}）中解析知识库 ID

        create 操作成功后，新知识库的 ID 只出现在这里。
        """
        if not self.resource_location:
            return None
        match = _KB_RESOURCE_PATTERN.search(self.resource_location)
        return match.group(1) if match else None
