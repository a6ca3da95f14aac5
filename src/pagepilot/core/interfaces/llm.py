"""Model client interface consumed by the step loop."""

from typing import TYPE_CHECKING, Any, Protocol

from pagepilot.core.domain.cancellation import CancellationToken
from pagepilot.core.domain.models import DecisionResult

if TYPE_CHECKING:
    from pagepilot.core.domain.macro_tool import DecisionSchema


class DecisionClientProtocol(Protocol):
    """
    Structured-decoding model client.

    invoke() submits the ordered messages together with the composed decision
    schema, and returns the decoded Decision plus token usage. It raises
    DecodeError when the model output does not conform to the schema and
    CancellationError promptly once the token is cancelled. Transport-level
    retries are the client's own concern and invisible to the loop.
    """

    async def invoke(
        self,
        messages: list[dict[str, Any]],
        schema: "DecisionSchema",
        token: CancellationToken,
    ) -> DecisionResult: ...
