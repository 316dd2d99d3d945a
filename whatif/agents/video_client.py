"""MiniMax video generation client.

Renders a short documentary-style clip for an analysed scenario:

- POST {base}/video_generation                       - submit render
- GET  {base}/query/video_generation?task_id=...     - render status

No retry and no backoff: the caller decides whether a failure is fatal.
"""

import logging
from collections.abc import Sequence

import httpx

from whatif.errors import UpstreamError, ValidationError
from whatif.models.analysis import Entity, TimelineEvent, VideoRenderTask

logger = logging.getLogger(__name__)

VIDEO_WIDTH = 1280
VIDEO_HEIGHT = 720
VIDEO_FPS = 24
MAX_FOCUS_ENTITIES = 3

VIDEO_STYLE_SUFFIX = (
    " Style: Professional documentary with smooth transitions, modern graphics,"
    " and clear visual metaphors. Duration: 30 seconds."
)


def build_video_prompt(
    scenario: str,
    entities: Sequence[Entity] | None = None,
    timeline: Sequence[TimelineEvent] | None = None,
) -> str:
    """Build the natural-language render prompt for a scenario."""
    prompt = f"Create a cinematic visualization of this future scenario: {scenario}"

    if entities:
        focus = ", ".join(e.name for e in entities[:MAX_FOCUS_ENTITIES])
        prompt += f" Focus on showing the impact on: {focus}."

    if timeline:
        opening = timeline[0]
        prompt += (
            f" Show the progression starting with: {opening.event}"
            f" in {opening.time}."
        )

    return prompt + VIDEO_STYLE_SUFFIX


class VideoClient:
    """Client for the MiniMax video generation API."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def generate(
        self,
        credential: str,
        scenario: str,
        entities: Sequence[Entity] | None = None,
        timeline: Sequence[TimelineEvent] | None = None,
    ) -> VideoRenderTask:
        """Submit a render for the scenario and return the task descriptor."""
        body = {
            "prompt": build_video_prompt(scenario, entities, timeline),
            "width": VIDEO_WIDTH,
            "height": VIDEO_HEIGHT,
            "frames_per_second": VIDEO_FPS,
            "prompt_optimizer": True,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {credential}",
        }

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport,
        ) as client:
            try:
                resp = await client.post(
                    f"{self._base_url}/video_generation",
                    headers=headers,
                    json=body,
                )
            except httpx.HTTPError as exc:
                raise UpstreamError(f"MiniMax API request failed: {exc}") from exc
            except ValueError as exc:
                raise ValidationError(
                    "minimaxApiKey contains characters that cannot be sent",
                ) from exc

        task = self._parse_task(resp)
        logger.info("Video render submitted: task_id=%s status=%s", task.task_id, task.status)
        return task

    async def poll_status(self, credential: str, task_id: str) -> VideoRenderTask:
        """Query the status of a previously submitted render."""
        headers = {"Authorization": f"Bearer {credential}"}

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport,
        ) as client:
            try:
                resp = await client.get(
                    f"{self._base_url}/query/video_generation",
                    headers=headers,
                    params={"task_id": task_id},
                )
            except httpx.HTTPError as exc:
                raise UpstreamError(f"MiniMax API request failed: {exc}") from exc
            except ValueError as exc:
                raise ValidationError(
                    "minimaxApiKey contains characters that cannot be sent",
                ) from exc

        return self._parse_task(resp)

    # ------------------------------------------------------------------
    # Response parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_task(resp: httpx.Response) -> VideoRenderTask:
        if not resp.is_success:
            raise UpstreamError(
                f"MiniMax API error: {resp.status_code}",
                upstream_status=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(
                "MiniMax API returned a non-JSON body",
                upstream_status=resp.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamError(
                "MiniMax API returned an unexpected response shape",
                upstream_status=resp.status_code,
            )
        return VideoRenderTask.model_validate(data)
