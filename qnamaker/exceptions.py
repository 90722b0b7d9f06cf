"""客户端异常定义

远程调用失败与异步操作失败是两类不同的错误，调用方可以分别处理：
- RemoteCallFailed: HTTP 交换本身失败（非 2xx 或网络错误）
- OperationFailed: HTTP 正常，但服务端的异步操作以失败告终
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from qnamaker.schemas.operation import ErrorDetail, OperationDescriptor


class QnAMakerError(Exception):
    """QnA Maker 客户端错误基类"""


class CredentialError(QnAMakerError):
    """凭据类型与调用类型不匹配（例如用 endpoint key 调用管理接口）"""


class RemoteCallFailed(QnAMakerError):
    """HTTP 调用失败

    status_code 为 None 表示请求没有拿到响应（连接失败、超时等）。
    """

    def __init__(
        self,
        status_code: int | None,
        reason_phrase: str | None,
        *,
        method: str | None = None,
        url: str | None = None,
        body: str | None = None,
    ):
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.method = method
        self.url = url
        self.body = body

        if status_code is None:
            message = f"HTTP request failed: {reason_phrase}"
        else:
            message = f"HTTP Error code - {status_code} with reason phrase {reason_phrase}"
        if method and url:
            message += f" ({method} {url})"
        if body:
            message += f"\nResponse body: {body}"
        super().__init__(message)


class OperationFailed(QnAMakerError):
    """异步操作以失败（或无法识别的）状态结束"""

    def __init__(self, descriptor: OperationDescriptor, error: ErrorDetail):
        self.descriptor = descriptor
        self.error = error
        self.operation_id = descriptor.operation_id
        self.operation_state = descriptor.operation_state
        super().__init__(error.describe())


class MalformedOperationStatus(QnAMakerError):
    """操作状态既不在进行中，也没有携带错误信息"""

    def __init__(self, descriptor: OperationDescriptor):
        self.descriptor = descriptor
        self.operation_id = descriptor.operation_id
        self.operation_state = descriptor.operation_state
        super().__init__(
            f"Operation {descriptor.operation_id} reported state "
            f"{descriptor.operation_state!r} without an error payload"
        )


class OperationTimeout(QnAMakerError):
    """等待操作完成超时，descriptor 为最后一次观察到的状态"""

    def __init__(self, descriptor: OperationDescriptor, timeout: float):
        self.descriptor = descriptor
        self.timeout = timeout
        self.operation_id = descriptor.operation_id
        super().__init__(
            f"Operation {descriptor.operation_id} still {descriptor.operation_state!r} "
            f"after {timeout}s"
        )
