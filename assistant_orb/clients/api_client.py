"""HTTP client for the CRM chat backend."""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from assistant_orb.core.config import Settings, settings as default_settings
from assistant_orb.exceptions.chat import (
    NetworkOrServerError,
    RequestTimeoutError,
    map_http_error,
)
from assistant_orb.schemas.base import BaseSchema
from assistant_orb.schemas.chat import (
    ChatReply,
    ChatRequest,
    Conversation,
    ConversationCreate,
    ConversationId,
    Message,
    MessageContext,
    MessageCreate,
    MessageRole,
    RecentEvent,
    TrackedEvent,
)


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AssistantApiClient:
    """Async client for the conversation, message, reply and event endpoints.

    Tenant scope comes from the ``Settings`` passed in and is sent as headers
    on every request. Reads are retried with exponential backoff on transport
    errors and 5xx responses; writes are never retried.
    """

    def __init__(self, config: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the client.

        Args:
            config: Settings carrying base URL, tenant headers and retry policy.
            transport: Optional httpx transport, e.g. an ASGI app in tests.
        """
        self.settings = config or default_settings
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            headers={
                "Accept": "application/json",
                "User-Agent": self.user_agent,
                **self.settings.tenant_headers,
            },
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    @property
    def user_agent(self) -> str:
        return f"{self.settings.app_name}/{self.settings.version}"

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # Conversations

    async def list_conversations(self) -> list[Conversation]:
        data = await self._get("/conversations")
        return self._parse_list(Conversation, data, "/conversations")

    async def create_conversation(self, title: str) -> Conversation:
        payload = self._payload(ConversationCreate, title=title)
        data = await self._send("POST", "/conversations", json=payload)
        return self._parse(Conversation, data, "/conversations")

    async def delete_conversation(self, conversation_id: ConversationId) -> None:
        await self._send("DELETE", f"/conversations/{conversation_id}")

    # Messages

    async def list_messages(self, conversation_id: ConversationId) -> list[Message]:
        data = await self._get(f"/conversations/{conversation_id}/messages")
        return self._parse_list(Message, data, f"/conversations/{conversation_id}/messages")

    async def append_message(
        self, conversation_id: ConversationId, content: str, context: MessageContext | None = None
    ) -> Message:
        payload = self._payload(MessageCreate, content=content, role=MessageRole.USER, context=context)
        data = await self._send("POST", f"/conversations/{conversation_id}/messages", json=payload)
        return self._parse(Message, data, f"/conversations/{conversation_id}/messages")

    async def generate_reply(
        self, message: str, conversation_id: ConversationId, context: MessageContext | None = None
    ) -> ChatReply:
        payload = self._payload(ChatRequest, message=message, conversation_id=conversation_id, context=context)
        data = await self._send("POST", "/ai/chat", json=payload)
        return self._parse(ChatReply, data, "/ai/chat")

    # Platform events

    async def list_recent_events(self) -> list[RecentEvent]:
        data = await self._get("/event-logs/recent")
        return self._parse_list(RecentEvent, data, "/event-logs/recent")

    async def track_event(self, event: TrackedEvent) -> None:
        await self._send("POST", "/events", json=event.to_wire())

    # Private helper methods

    async def _get(self, path: str) -> Any:
        """GET with bounded retries; GETs are idempotent."""
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(self.settings.read_max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.retry_backoff_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(self._send, "GET", path)

    async def _send(self, method: str, path: str, json: dict | None = None) -> Any:
        """Issue one request and translate failures into NetworkOrServerError."""
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out: {str(e)}")
            raise RequestTimeoutError(details={"method": method, "path": path}) from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {str(e)}")
            raise NetworkOrServerError(
                f"Request to the chat backend failed: {str(e)}",
                details={"method": method, "path": path},
            ) from e

        if response.is_error:
            message = self._error_message(response)
            logger.error(f"{method} {path} returned {response.status_code}: {message}")
            raise map_http_error(
                response.status_code, message, {"method": method, "path": path}
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise NetworkOrServerError(
                "Backend returned a malformed response",
                status_code=response.status_code,
                details={"method": method, "path": path},
            ) from e

    @staticmethod
    def _payload(model: type[BaseSchema], **fields: Any) -> dict:
        """Build a request body; invalid input fails like any other request."""
        try:
            return model(**fields).to_wire()
        except ValidationError as e:
            logger.error(f"Invalid {model.__name__} payload: {str(e)}")
            raise NetworkOrServerError(
                f"Invalid {model.__name__} payload",
                details={"errors": e.errors(include_url=False)},
            ) from e

    @staticmethod
    def _parse(model: type[ModelT], data: Any, path: str) -> ModelT:
        """Validate a response body, treating schema mismatches as backend errors."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error(f"Response from {path} does not match {model.__name__}: {str(e)}")
            raise NetworkOrServerError(
                "Backend returned a malformed response",
                details={"path": path, "errors": e.errors(include_url=False)},
            ) from e

    @classmethod
    def _parse_list(cls, model: type[ModelT], data: Any, path: str) -> list[ModelT]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise NetworkOrServerError(
                "Backend returned a malformed response",
                details={"path": path, "errors": [f"expected a list, got {type(data).__name__}"]},
            )
        return [cls._parse(model, item, path) for item in data]

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return str(body.get("error") or body.get("message") or body)
        return str(body)


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, NetworkOrServerError) and error.is_transient
