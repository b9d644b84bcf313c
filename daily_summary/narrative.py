"""End-of-day narrative generation from grouped activities."""
from __future__ import annotations

import json
import time

from loguru import logger
from openai import OpenAI, RateLimitError

from daily_summary.models import GroupedActivities

SKIPPED_RESPONSE = "LLM summary generation skipped"
OPENAI_MAX_ATTEMPTS = 5
OPENAI_RETRY_DELAY_SECONDS = 20
OPENAI_MAX_TOKENS = 1024

SUMMARY_PROMPT_TEMPLATE = """\
Please write a personal end-of-day summary based on the following activities. \
Focus on what I did and what happened, without value judgments.

Keep the grouping where a Linear issue has a PR associated with it.

Put each top-level activity in its own bullet point with a link to the activity \
formatted as a markdown link with the name of the activity as the link text.

Summarise multiple commit messages into a single prose description of all the \
changes, starting like: "Made commits to...", **NOT** listing the commit messages.

Structure the output like this:

Opened PRs:
- {{repo name}}: [PR title](PR URL)
  - summary of what the PR does if it has a description
  - details about the changes made and the PR itself

Merged PRs:
- {{repo name}}: [PR title](PR URL)
  - summary of what the PR does if it has a description
  - details about the changes made and the PR itself

Linear:
- [Linear issue title](Linear issue URL)
  - summarise the activity on the issue

Activities: {activities}"""


class OpenAIRetryError(RuntimeError):
    """Raised when OpenAI retries are exhausted."""


class OpenAIEmptyResponseError(RuntimeError):
    """Raised when OpenAI returns no content."""

    def __init__(self) -> None:
        """Create an empty response error."""
        super().__init__("OpenAI response missing content.")


def build_summary_prompt(activities: GroupedActivities) -> str:
    """Render the instruction template around the serialized activities."""
    return SUMMARY_PROMPT_TEMPLATE.format(
        activities=json.dumps(activities.to_payload(), indent=2),
    )


def call_openai(client: OpenAI, prompt: str, model: str) -> str:
    """Call OpenAI and return the response content."""
    for attempt in range(1, OPENAI_MAX_ATTEMPTS + 1):
        start = time.perf_counter()
        try:
            response = client.chat.completions.create(
                model=model,
                max_tokens=OPENAI_MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
        except RateLimitError:
            if attempt == OPENAI_MAX_ATTEMPTS:
                raise
            logger.warning(
                "Rate limited by OpenAI, retrying",
                model=model,
                wait_seconds=OPENAI_RETRY_DELAY_SECONDS,
            )
            time.sleep(OPENAI_RETRY_DELAY_SECONDS)
            continue
        usage = response.usage
        logger.info(
            "LLM call completed",
            model=model,
            elapsed=f"{time.perf_counter() - start:.2f}s",
            prompt_tokens=getattr(usage, "prompt_tokens", None),
            completion_tokens=getattr(usage, "completion_tokens", None),
        )
        content = response.choices[0].message.content if response.choices else None
        if content is None:
            raise OpenAIEmptyResponseError
        return content.strip()
    raise OpenAIRetryError


def generate_narrative(
    client: OpenAI | None,
    activities: GroupedActivities,
    model: str,
    skip_llm: bool = False,
) -> str:
    """Return the narrative text, or the skip sentinel when generation is disabled."""
    if skip_llm or client is None:
        logger.info("Skipping LLM summary generation")
        return SKIPPED_RESPONSE
    return call_openai(client, build_summary_prompt(activities), model)
