import logging
from typing import Any, Callable

from src.apl.base import APL
from src.webhooks.middleware import (
    Step,
    WebhookContext,
    WebhookRequest,
    build_pipeline,
    run_pipeline,
)
from src.webhooks.subscription import selected_fields

logger = logging.getLogger(__name__)

Handler = Callable[[WebhookContext], dict]


class SyncWebhook:
    """A synchronous webhook subscription and the handler that answers it.

    The platform waits for the handler's JSON response and interprets it, so
    the handler runs inline with the request.
    """

    def __init__(
        self,
        name: str,
        webhook_path: str,
        event: str,
        query: str,
        apl: APL,
        payload_type: Any,
        handler: Handler,
        required_fields: tuple[str, ...] = (),
        steps: tuple[Step, ...] | None = None,
    ):
        self.name = name
        self.webhook_path = webhook_path.strip("/")
        self.event = event
        self.query = query
        self.apl = apl
        self.payload_type = payload_type
        self.handler = handler
        self.required_fields = required_fields
        self.steps = steps if steps is not None else build_pipeline()

        self.selected_fields = selected_fields(query)
        unselected = sorted(set(required_fields) - self.selected_fields)
        if unselected:
            raise ValueError(
                f"Webhook {name!r} reads fields its subscription does not select: "
                f"{', '.join(unselected)}"
            )

    @property
    def route(self) -> str:
        return "/" + self.webhook_path

    def target_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self.webhook_path}"

    def manifest_entry(self, base_url: str) -> dict:
        return {
            "name": self.name,
            "syncEvents": [self.event],
            "query": self.query,
            "targetUrl": self.target_url(base_url),
            "isActive": True,
        }

    def process(self, request: WebhookRequest, base_url: str) -> dict:
        """Run the request pipeline, then the handler; return the response body.

        Raises:
            WebhookError: the pipeline rejected the delivery.
        """
        ctx = WebhookContext(
            request=request,
            webhook=self,
            apl=self.apl,
            base_url=base_url,
        )
        run_pipeline(ctx, self.steps)
        logger.debug("Dispatching %s delivery from %s", self.event, ctx.api_url)
        return self.handler(ctx)
