"""
客户端单元测试

测试 qnamaker/client.py：
- 三种构造方式
- 提交 + 等待的组合流程（httpx.MockTransport 回放完整交互）
"""

import httpx
import pytest

from qnamaker import (
    CreateKBRequest,
    CredentialError,
    GenerateAnswerRequest,
    OperationFailed,
    QnAMakerClient,
    RequestDispatcher,
    UpdateKBRequest,
)
from qnamaker.schemas import OperationDescriptor
from qnamaker.tracker import OperationTracker

BASE_URL = "https://westus.api.cognitive.microsoft.com/qnamaker/v4.0"


class ScriptedService:
    """按 (method, path) 返回预置响应序列的假服务"""

    def __init__(self, routes: dict[tuple[str, str], list[httpx.Response]]):
        self.routes = {key: list(value) for key, value in routes.items()}
        self.calls: list[tuple[str, str]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.calls.append(key)
        queue = self.routes[key]
        return queue.pop(0) if len(queue) > 1 else queue[0]


def _client_with(service: ScriptedService, **kwargs) -> tuple[QnAMakerClient, httpx.AsyncClient]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    dispatcher = RequestDispatcher(http_client, management_base_url=BASE_URL)
    client = QnAMakerClient(dispatcher=dispatcher, **kwargs)
    return client, http_client


def _no_wait_tracker(client: QnAMakerClient) -> None:
    async def no_sleep(_):
        return None

    client._tracker = OperationTracker(client._dispatcher, client._subscription_key, batch_size=3, delay=1.0, sleep=no_sleep)


def _operation(state: str, **extra) -> httpx.Response:
    return httpx.Response(200, json={"operationId": "op-1", "operationState": state, **extra})


class TestConstruction:
    """测试构造"""

    @pytest.mark.asyncio
    async def test_factories(self):
        async with QnAMakerClient.for_query("https://host", "kb-1", "endpoint-key") as client:
            assert client.handle.endpoint_key == "endpoint-key"
            with pytest.raises(CredentialError):
                client.tracker

        async with QnAMakerClient.for_management("kb-1", "sub-key") as client:
            assert client.handle.subscription_key == "sub-key"
            assert isinstance(client.tracker, OperationTracker)

        async with QnAMakerClient.for_creation("sub-key") as client:
            assert client.kb_id is None
            with pytest.raises(CredentialError):
                client.handle

    def test_both_credentials_rejected(self):
        with pytest.raises(CredentialError):
            QnAMakerClient(kb_id="kb-1", endpoint_key="a", subscription_key="b")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"kb_id": "kb-1", "host_url": "https://host", "endpoint_key": ""},
            {"kb_id": "kb-1", "subscription_key": "  "},
            {"subscription_key": ""},
            {"kb_id": "kb-1"},
        ],
    )
    def test_missing_or_empty_credentials_rejected(self, kwargs):
        """测试空凭据在构造时即报 CredentialError"""
        with pytest.raises(CredentialError):
            QnAMakerClient(**kwargs)

    def test_empty_endpoint_key_via_factory(self):
        with pytest.raises(CredentialError):
            QnAMakerClient.for_query("https://host", "kb-1", "")

    @pytest.mark.asyncio
    async def test_dispatcher_and_http_client_are_exclusive(self):
        """测试同时注入分发器与 HTTP 客户端时报错"""
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(ScriptedService({})))
        dispatcher = RequestDispatcher(http_client, management_base_url=BASE_URL)

        with pytest.raises(ValueError):
            QnAMakerClient.for_management("kb-1", "sub-key", dispatcher=dispatcher, http_client=http_client)

        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_query_client_cannot_manage(self):
        service = ScriptedService({})
        client, http_client = _client_with(service, kb_id="kb-1", host_url="https://host", endpoint_key="e")

        with pytest.raises(CredentialError):
            await client.publish_kb()
        with pytest.raises(CredentialError):
            await client.create_kb(CreateKBRequest(name="FAQ"))

        assert service.calls == []
        await client.aclose()
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_is_operation_successful(self):
        async with QnAMakerClient.for_creation("sub-key") as client:
            assert client.is_operation_successful("Succeeded")
            assert not client.is_operation_successful("Failed")


class TestWorkflows:
    """测试提交 + 等待"""

    @pytest.mark.asyncio
    async def test_create_kb_and_wait_returns_new_kb_id(self):
        """测试创建后从 resourceLocation 取得知识库 ID"""
        service = ScriptedService(
            {
                ("POST", "/qnamaker/v4.0/knowledgebases/create"): [_operation("NotStarted")],
                ("GET", "/qnamaker/v4.0/operations/op-1"): [
                    _operation("Running"),
                    _operation("Succeeded", resourceLocation="/knowledgebases/kb-new"),
                ],
            }
        )
        client, http_client = _client_with(service, subscription_key="sub-key")
        _no_wait_tracker(client)

        kb_id = await client.create_kb_and_wait(CreateKBRequest(name="FAQ"))

        assert kb_id == "kb-new"
        assert service.calls == [
            ("POST", "/qnamaker/v4.0/knowledgebases/create"),
            ("GET", "/qnamaker/v4.0/operations/op-1"),
            ("GET", "/qnamaker/v4.0/operations/op-1"),
        ]
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_update_kb_and_wait_reports_failure(self):
        """测试更新失败时抛出 OperationFailed"""
        service = ScriptedService(
            {
                ("PATCH", "/qnamaker/v4.0/knowledgebases/kb-1"): [_operation("NotStarted")],
                ("GET", "/qnamaker/v4.0/operations/op-1"): [
                    _operation(
                        "Failed",
                        errorResponse={
                            "error": {"code": "BadArgument", "message": "url unreachable", "details": ["https://x"]}
                        },
                    )
                ],
            }
        )
        client, http_client = _client_with(service, kb_id="kb-1", subscription_key="sub-key")
        _no_wait_tracker(client)

        with pytest.raises(OperationFailed) as exc_info:
            await client.update_kb_and_wait(UpdateKBRequest())

        assert "BadArgument" in str(exc_info.value)
        assert "https://x" in str(exc_info.value)
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_publish_kb_and_wait_no_content(self):
        """测试发布返回 204 时无需轮询"""
        service = ScriptedService({("POST", "/qnamaker/v4.0/knowledgebases/kb-1"): [httpx.Response(204)]})
        client, http_client = _client_with(service, kb_id="kb-1", subscription_key="sub-key")

        state = await client.publish_kb_and_wait()

        assert state == "Succeeded"
        assert service.calls == [("POST", "/qnamaker/v4.0/knowledgebases/kb-1")]
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_await_operation_completion_state(self):
        service = ScriptedService({("GET", "/qnamaker/v4.0/operations/op-1"): [_operation("Succeeded")]})
        client, http_client = _client_with(service, kb_id="kb-1", subscription_key="sub-key")
        _no_wait_tracker(client)

        state = await client.await_operation_completion_state(
            OperationDescriptor(operation_id="op-1", operation_state="Running")
        )

        assert state == "Succeeded"
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_generate_answer(self):
        service = ScriptedService(
            {
                ("POST", "/qnamaker/knowledgebases/kb-1/generateAnswer/"): [
                    httpx.Response(200, json={"answers": [{"answer": "42", "score": 99.0, "questions": []}]})
                ]
            }
        )
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(service))
        client = QnAMakerClient.for_query("https://runtime.example.net", "kb-1", "endpoint-key", http_client=http_client)

        result = await client.generate_answer(GenerateAnswerRequest(question="meaning of life"))

        assert result.answers[0].answer == "42"
        await client.aclose()
        assert not http_client.is_closed
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_get_kb_details(self):
        service = ScriptedService(
            {("GET", "/qnamaker/v4.0/knowledgebases/kb-1"): [httpx.Response(200, json={"id": "kb-1", "name": "FAQ"})]}
        )
        client, http_client = _client_with(service, kb_id="kb-1", subscription_key="sub-key")

        details = await client.get_kb_details()

        assert details.name == "FAQ"
        await http_client.aclose()
