"""
异步操作完成跟踪

create / update / publish 在服务端异步执行。OperationTracker 通过轮询
GET /operations/{operationId} 把一个长时间运行的操作变成一次 await：

    NotStarted / Running  ->  继续轮询
    Succeeded             ->  返回 "Succeeded"
    Failed / 未知状态     ->  抛出 OperationFailed（携带服务端错误信息）

限流：服务端限制 3 qps。每连续发出 batch_size（默认 3）次查询后暂停 delay（默认 1 秒），
前 batch_size 次查询不等待。

默认不设总超时，与服务端行为保持一致（一直等到终态）；调用方可以传入 timeout，
或者直接取消所在的 asyncio 任务。timeout 覆盖整个等待过程，包括尚未返回的状态查询。

使用示例：
    tracker = OperationTracker(dispatcher, subscription_key)
    descriptor = await dispatcher.update_kb(handle, request)
    state = await tracker.await_completion(descriptor, timeout=300)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from qnamaker.config import get_settings
from qnamaker.dispatcher import RequestDispatcher
from qnamaker.exceptions import MalformedOperationStatus, OperationFailed, OperationTimeout
from qnamaker.infra.logging import operation_context
from qnamaker.schemas import OperationDescriptor, OperationState
from qnamaker.schemas.operation import is_operation_successful

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class OperationTracker:
    """轮询异步操作直到终态

    每次 await_completion 只持有自己的 descriptor，不同操作之间没有共享状态，
    同一个 tracker 可以并发跟踪多个操作。
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        subscription_key: str,
        *,
        batch_size: int | None = None,
        delay: float | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """
        Args:
            dispatcher: 请求分发器
            subscription_key: 管理凭据，用于状态查询
            batch_size: 每暂停一次之前允许的查询次数，默认读取配置（3）
            delay: 暂停时长（秒），默认读取配置（1.0）
            sleep: 暂停函数，测试时可替换
        """
        settings = get_settings()
        self._dispatcher = dispatcher
        self._subscription_key = subscription_key
        self.batch_size = batch_size if batch_size is not None else settings.poll_batch_size
        self.delay = delay if delay is not None else settings.poll_delay_seconds
        self._sleep = sleep
        if self.batch_size < 1:
            raise ValueError("batch_size 必须大于 0")

    async def await_completion(
        self,
        descriptor: OperationDescriptor,
        *,
        timeout: float | None = None,
    ) -> str:
        """
        等待操作到达终态，返回终态字符串（成功时为 "Succeeded"）

        参数与异常同 wait()。
        """
        final = await self.wait(descriptor, timeout=timeout)
        return final.operation_state

    async def wait(
        self,
        descriptor: OperationDescriptor,
        *,
        timeout: float | None = None,
    ) -> OperationDescriptor:
        """
        等待操作到达终态

        Args:
            descriptor: 提交操作时返回的描述（初始状态）
            timeout: 总超时（秒），None 表示不限时

        Returns:
            最后一次查询得到的描述（成功终态）

        Raises:
            OperationFailed: 操作失败或状态无法识别
            MalformedOperationStatus: 状态无法识别且没有错误信息
            OperationTimeout: 超过 timeout 仍未结束
            RemoteCallFailed: 状态查询本身失败
        """
        operation_id = descriptor.operation_id
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout if timeout is not None else None
        current = descriptor

        async def poll() -> OperationDescriptor:
            nonlocal current
            count = 0
            while not self._is_complete(current):
                if not operation_id:
                    raise MalformedOperationStatus(current)

                if count == self.batch_size:
                    if deadline is not None and loop.time() + self.delay > deadline:
                        raise OperationTimeout(current, timeout)
                    logger.debug(f"已连续查询 {count} 次，暂停 {self.delay}s")
                    await self._sleep(self.delay)
                    count = 0

                if deadline is not None and loop.time() >= deadline:
                    raise OperationTimeout(current, timeout)

                current = await self._dispatcher.get_operation_details(
                    operation_id,
                    subscription_key=self._subscription_key,
                )
                count += 1
                logger.debug(f"操作状态: {current.operation_state}")
            return current

        with operation_context(operation_id):
            logger.info(f"开始等待操作 {operation_id}，初始状态 {current.operation_state}")
            if timeout is None:
                final = await poll()
            else:
                # 截止时间同样约束进行中的状态查询
                try:
                    final = await asyncio.wait_for(poll(), timeout)
                except asyncio.TimeoutError:
                    logger.warning(f"操作 {operation_id} 等待超时（{timeout}s）")
                    raise OperationTimeout(current, timeout) from None

            logger.info(f"操作 {operation_id} 完成: {final.operation_state}")
            return final

    @staticmethod
    def is_operation_successful(operation_state: str | None) -> bool:
        """终态是否表示成功"""
        return is_operation_successful(operation_state)

    @staticmethod
    def _is_complete(descriptor: OperationDescriptor) -> bool:
        """
        判断操作是否结束

        Returns:
            True 表示成功结束，False 表示仍在进行中；其他情况直接抛出异常
        """
        if descriptor.state is OperationState.SUCCEEDED:
            return True
        if descriptor.is_in_progress:
            return False

        error = descriptor.error
        if error is None:
            logger.error(
                f"操作 {descriptor.operation_id} 状态 {descriptor.operation_state!r} 且没有错误信息"
            )
            raise MalformedOperationStatus(descriptor)

        logger.error(f"操作 {descriptor.operation_id} 失败: {error.code} {error.message}")
        raise OperationFailed(descriptor, error)
