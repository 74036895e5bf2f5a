# src/services/agent_invoker.py

"""Run the browser agent that searches for flight prices.

The browser is either a Kernel cloud browser (when ``KERNEL_API_KEY`` is
set; browser-use attaches over its CDP websocket) or a local Chromium
launched by browser-use.  The session is scoped by
:func:`browser_session`, which releases both the local handle and the
remote browser on every exit path.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from itertools import cycle
from typing import Any

from browser_use import Agent, BrowserSession, ChatGoogle, ChatOpenAI
from kernel import AsyncKernel

from src.config.settings import Settings, TrackerConfig
from src.exceptions import AgentSessionError, CleanupError, ConfigurationError
from src.models.agent_result import AgentFailure, AgentOutcome, AgentSuccess

logger = logging.getLogger("flight_tracker.agent")

SYSTEM_PROMPT = """\
You are a travel assistant that searches for flights and extracts prices accurately.

Be thorough, patient, and methodical. Take your time with each search.
When interacting with forms, wait for autocomplete suggestions to appear.
When selecting dates, be careful to choose exactly the requested dates."""

_EXAMPLE_AMOUNTS = (10_560, 14_302, 9_299, 12_012)


# ── Prompt ───────────────────────────────────────────────


def build_instruction(config: TrackerConfig) -> str:
    """Render the natural-language task for *config*."""
    depart = config.depart_date
    ret = config.return_date
    numbered = "\n".join(
        f"{i}. {dest}" for i, dest in enumerate(config.destinations, 1)
    )
    example = "\n".join(
        f"{dest}: {config.default_currency} {amount:,}"
        for dest, amount in zip(config.destinations, cycle(_EXAMPLE_AMOUNTS))
    )
    return f"""\
Open {config.start_url} and find the cheapest round-trip flight from {config.origin} \
to each destination below for {config.travel_dates}.

Search these destinations one by one:
{numbered}

For each destination:
- Enter "{config.origin}" as origin
- Enter the destination city name
- Select travel dates: Departing {depart:%B} {depart.day}, {depart.year}, \
returning {ret:%B} {ret.day}, {ret.year}
- Click search and wait for results
- Find and record the cheapest flight price shown (extract the full price including currency)

After searching all destinations, provide the results in this exact format:
RESULTS:
{example}

Use the exact format "Destination: CURRENCY AMOUNT" for each line."""


def build_llm(config: TrackerConfig) -> Any:
    """Pick the agent's chat model from the configured API keys.

    Gemini wins when ``GOOGLE_API_KEY`` is set, otherwise OpenAI.
    """
    if config.google_api_key:
        model = config.agent_model or Settings.GOOGLE_MODEL
        logger.info("Using Gemini agent model %s", model)
        return ChatGoogle(model=model, api_key=config.google_api_key)
    if config.openai_api_key:
        model = config.agent_model or Settings.OPENAI_MODEL
        logger.info("Using OpenAI agent model %s", model)
        return ChatOpenAI(model=model, api_key=config.openai_api_key)
    raise ConfigurationError(
        "No agent model configured: set OPENAI_API_KEY or GOOGLE_API_KEY"
    )


# ── Session scope ────────────────────────────────────────


async def _close_local_session(session: BrowserSession) -> None:
    try:
        await session.kill()
        logger.info("Browser session closed")
    except Exception as exc:
        error = CleanupError(f"Failed to close browser session: {exc}")
        logger.error("%s", error, exc_info=exc)


async def _delete_kernel_browser(kernel: AsyncKernel, session_id: str) -> None:
    try:
        await kernel.browsers.delete_by_id(session_id)
        logger.info("Kernel browser %s deleted", session_id)
    except Exception as exc:
        error = CleanupError(
            f"Failed to delete Kernel browser {session_id}: {exc}"
        )
        logger.error("%s", error, exc_info=exc)


async def _close_kernel_client(kernel: AsyncKernel) -> None:
    try:
        await kernel.close()
    except Exception as exc:
        error = CleanupError(f"Failed to close Kernel client: {exc}")
        logger.error("%s", error, exc_info=exc)


@asynccontextmanager
async def browser_session(
    config: TrackerConfig,
) -> AsyncIterator[BrowserSession]:
    """Provision a browser and guarantee its release.

    Raises:
        AgentSessionError: If the cloud or local browser cannot be set up.
    """
    kernel: AsyncKernel | None = None
    kernel_session_id: str | None = None
    cdp_url: str | None = None

    if config.use_cloud_browser:
        logger.info("Connecting to Kernel cloud browser")
        kernel = AsyncKernel(api_key=config.kernel_api_key)
        try:
            kernel_browser = await kernel.browsers.create(stealth=True)
        except Exception as exc:
            await _close_kernel_client(kernel)
            msg = f"Could not create Kernel browser: {exc}"
            raise AgentSessionError(msg) from exc
        kernel_session_id = kernel_browser.session_id
        cdp_url = kernel_browser.cdp_ws_url
        logger.info("Kernel browser created: %s", kernel_session_id)
        logger.info("Live view: %s", kernel_browser.browser_live_view_url)

    session: BrowserSession | None = None
    try:
        try:
            if cdp_url is not None:
                session = BrowserSession(cdp_url=cdp_url)
            else:
                session = BrowserSession(headless=config.headless)
        except Exception as exc:
            msg = f"Could not start browser session: {exc}"
            raise AgentSessionError(msg) from exc
        yield session
    finally:
        if session is not None:
            await _close_local_session(session)
        if kernel is not None and kernel_session_id is not None:
            await _delete_kernel_browser(kernel, kernel_session_id)
        if kernel is not None:
            await _close_kernel_client(kernel)


# ── Invoker ──────────────────────────────────────────────


class AgentInvoker:
    """Issue one instruction to the browser agent and await its report."""

    def __init__(self, config: TrackerConfig, llm: Any | None = None) -> None:
        self.config = config
        self._llm = llm

    async def run(self, instruction: str | None = None) -> AgentOutcome:
        """Run the agent once.

        Agent errors, the wall-clock timeout, and runs that end
        without a final report come back as :class:`AgentFailure`.

        Raises:
            AgentSessionError: If the browser cannot be provisioned.
            ConfigurationError: If no agent model is configured.
        """
        task = instruction or build_instruction(self.config)
        llm = self._llm or build_llm(self.config)

        async with browser_session(self.config) as session:
            logger.info(
                "Starting agent search (max %d steps, timeout %.0fs)",
                self.config.max_steps,
                self.config.agent_timeout,
            )
            try:
                agent = Agent(
                    task=task,
                    llm=llm,
                    browser_session=session,
                    extend_system_message=SYSTEM_PROMPT,
                )
                history = await asyncio.wait_for(
                    agent.run(max_steps=self.config.max_steps),
                    timeout=self.config.agent_timeout,
                )
            except TimeoutError:
                logger.error(
                    "Agent timed out after %.0fs", self.config.agent_timeout
                )
                return AgentFailure(
                    f"agent timed out after {self.config.agent_timeout:.0f}s"
                )
            except Exception as exc:
                logger.error("Agent run failed: %s", exc, exc_info=True)
                return AgentFailure(f"agent run failed: {exc}")

        steps = history.number_of_steps()
        message = history.final_result()
        if message is None or not history.is_done():
            logger.error(
                "Agent stopped after %d steps without a final report", steps
            )
            return AgentFailure(
                f"agent stopped after {steps} steps without a final report"
            )

        logger.info("Agent completed search in %d steps", steps)
        logger.debug("Agent report:\n%s", message)
        return AgentSuccess(message=message, steps=steps)
