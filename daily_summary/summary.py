"""Run one day's summary: fetch both sources, group, narrate."""
from __future__ import annotations

import concurrent.futures
import time

import requests
from loguru import logger
from openai import OpenAI
from pydantic import BaseModel, ConfigDict

from daily_summary.graphql import github_session, linear_session
from daily_summary.grouping import group_activities
from daily_summary.issues import collect_linear_activities
from daily_summary.models import SummaryResult
from daily_summary.narrative import generate_narrative
from daily_summary.pull_requests import collect_pr_activities
from daily_summary.settings import MISSING_OPENAI_KEY_MESSAGE, Settings
from daily_summary.tickets import build_ticket_regex
from daily_summary.window import DayWindow


class Clients(BaseModel):
    """API handles created once per process and passed to every collaborator."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    github: requests.Session
    linear: requests.Session
    openai: OpenAI | None = None

    def close(self) -> None:
        self.github.close()
        self.linear.close()
        if self.openai is not None:
            self.openai.close()


def build_clients(settings: Settings, skip_llm: bool = False) -> Clients:
    """Create the API handles needed for a run."""
    openai_client = None
    if not skip_llm:
        if not settings.openai_api_key:
            raise SystemExit(MISSING_OPENAI_KEY_MESSAGE)
        openai_client = OpenAI(api_key=settings.openai_api_key)
    return Clients(
        github=github_session(settings.resolve_github_token()),
        linear=linear_session(settings.resolve_linear_api_key()),
        openai=openai_client,
    )


def generate_summary(
    window: DayWindow,
    settings: Settings,
    clients: Clients,
    skip_llm: bool = False,
) -> SummaryResult:
    """Collect, group and narrate the activity for a single day."""
    logger.info("Summarizing {day}", day=window.label)
    start = time.perf_counter()
    ticket_regex = build_ticket_regex(settings.summary_ticket_regex)
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        pr_future = executor.submit(
            collect_pr_activities,
            clients.github,
            clients.linear,
            window,
            ticket_regex,
            settings.summary_pr_limit,
        )
        linear_future = executor.submit(collect_linear_activities, clients.linear, window)
        pr_activities = pr_future.result()
        linear_activities = linear_future.result()

    activities = group_activities(pr_activities, linear_activities)
    logger.info(
        "Grouped activities",
        opened_prs=len(activities.opened_prs),
        merged_prs=len(activities.merged_prs),
        linear_issues=len(activities.linear_issues),
        elapsed=f"{time.perf_counter() - start:.2f}s",
    )
    response = generate_narrative(
        clients.openai,
        activities,
        settings.openai_model,
        skip_llm=skip_llm,
    )
    return SummaryResult(activities=activities, response=response)
