"""Multi-provider AI orchestration with ordered fallback.

Each capability (summarize, chat, keywords, embed) owns a tuple of
:class:`ProviderSlot` entries in priority order.  A request walks its chain:

  1. call the slot, bounded by ``asyncio.wait_for(timeout_seconds)``;
  2. a non-empty result is returned immediately;
  3. any exception raised by the provider (other than cancellation), a
     timeout or an empty result is logged and the next slot is tried;
  4. when the chain is exhausted :class:`AllProvidersFailedError` is
     raised carrying one :class:`ProviderAttempt` per slot tried.

There is no retry, backoff or circuit breaker: every request starts again
from the first slot.  Prompts are built by the pure functions below so the
same input always produces the same provider request.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from docaugment.interfaces.embedding_provider import IEmbeddingProvider
from docaugment.interfaces.llm_provider import ILLMProvider
from docaugment.utils.errors import AllProvidersFailedError, DocAugmentError, ProviderAttempt

logger = structlog.get_logger(logger_name=__name__)

_T = TypeVar("_T")

SUMMARY_MAX_TOKENS = 1000
CHAT_MAX_TOKENS = 800
KEYWORDS_MAX_TOKENS = 200

_SUMMARY_INSTRUCTION = (
    "You are an expert research paper summarizer. Provide concise, accurate "
    "summaries that capture the main findings, methodology, and conclusions."
)
_CHAT_INSTRUCTION = (
    "You are an AI assistant that helps users understand research papers. Use "
    "the following document content to answer questions accurately:"
)
_KEYWORDS_INSTRUCTION = (
    "Extract 5-10 key terms and phrases from the following research paper text. "
    "Return them as a comma-separated list."
)


# ---------------------------------------------------------------------------
# Prompt builders
# ---------------------------------------------------------------------------

def build_summary_prompt(text: str) -> str:
    return (
        f"{_SUMMARY_INSTRUCTION}\n\n"
        f"Please summarize the following research paper text:\n\n{text}"
    )


def build_chat_prompt(text: str, message: str, excerpt_chars: int = 3000) -> str:
    """Return the chat prompt: instruction, document excerpt, then the question."""
    return (
        f"{_CHAT_INSTRUCTION}\n\n"
        f"Document content:\n{text[:excerpt_chars]}...\n\n"
        f"User question: {message}"
    )


def build_keywords_prompt(text: str, excerpt_chars: int = 2000) -> str:
    return f"{_KEYWORDS_INSTRUCTION}\n\n{text[:excerpt_chars]}"


def parse_keywords(reply: str) -> list[str]:
    """Split a comma-separated reply into trimmed, non-empty keywords."""
    return [k.strip() for k in reply.split(",") if k.strip()]


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderSlot:
    """One entry of a fallback chain: a provider name and the coroutine to call."""

    name: str
    call: Callable[..., Awaitable[Any]]


class AIOrchestrator:
    """Routes AI requests through per-capability fallback chains.

    Parameters
    ----------
    summarize, chat, keywords:
        Completion slots in priority order.  Each ``call`` accepts
        ``(prompt, max_tokens=..., temperature=...)`` and returns text.
    embed:
        Embedding slots in priority order.  Each ``call`` accepts one text
        and returns a vector.
    timeout_seconds:
        Per-attempt time budget.  A timed-out attempt falls through.
    temperature:
        Sampling temperature sent with every completion.
    chat_excerpt_chars, keywords_excerpt_chars, embed_max_chars:
        Character budgets applied to the document text before prompting.
    """

    def __init__(
        self,
        summarize: Sequence[ProviderSlot] = (),
        chat: Sequence[ProviderSlot] = (),
        keywords: Sequence[ProviderSlot] = (),
        embed: Sequence[ProviderSlot] = (),
        timeout_seconds: float = 60.0,
        temperature: float = 0.7,
        chat_excerpt_chars: int = 3000,
        keywords_excerpt_chars: int = 2000,
        embed_max_chars: int = 8000,
    ) -> None:
        self._chains: dict[str, tuple[ProviderSlot, ...]] = {
            "summarize": tuple(summarize),
            "chat": tuple(chat),
            "keywords": tuple(keywords),
            "embed": tuple(embed),
        }
        self._timeout = timeout_seconds
        self._temperature = temperature
        self._chat_excerpt_chars = chat_excerpt_chars
        self._keywords_excerpt_chars = keywords_excerpt_chars
        self._embed_max_chars = embed_max_chars

    @classmethod
    def from_providers(
        cls,
        completion_chains: dict[str, Sequence[ILLMProvider]],
        embedding_chain: Sequence[IEmbeddingProvider],
        **options: Any,
    ) -> AIOrchestrator:
        """Build slots from provider adapters.

        *completion_chains* maps ``"summarize"``, ``"chat"`` and
        ``"keywords"`` to ordered adapter lists; missing keys get an empty
        chain.
        """

        def _llm_slots(capability: str) -> tuple[ProviderSlot, ...]:
            return tuple(
                ProviderSlot(p.get_provider_name(), p.complete)
                for p in completion_chains.get(capability, ())
            )

        return cls(
            summarize=_llm_slots("summarize"),
            chat=_llm_slots("chat"),
            keywords=_llm_slots("keywords"),
            embed=tuple(ProviderSlot(p.get_provider_name(), p.embed_single) for p in embedding_chain),
            **options,
        )

    def provider_names(self, operation: str) -> list[str]:
        """Return the provider names configured for *operation*, in order."""
        return [slot.name for slot in self._chains[operation]]

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    async def summarize(self, text: str) -> str:
        prompt = build_summary_prompt(text)
        return await self._run(
            "summarize",
            lambda call: call(prompt, max_tokens=SUMMARY_MAX_TOKENS, temperature=self._temperature),
            _is_blank,
        )

    async def chat(self, text: str, message: str) -> str:
        prompt = build_chat_prompt(text, message, self._chat_excerpt_chars)
        return await self._run(
            "chat",
            lambda call: call(prompt, max_tokens=CHAT_MAX_TOKENS, temperature=self._temperature),
            _is_blank,
        )

    async def extract_keywords(self, text: str) -> list[str]:
        """Return 5-10 key terms.  A reply with no parsable term counts as empty."""
        prompt = build_keywords_prompt(text, self._keywords_excerpt_chars)

        async def _invoke(call: Callable[..., Awaitable[Any]]) -> list[str]:
            reply = await call(
                prompt, max_tokens=KEYWORDS_MAX_TOKENS, temperature=self._temperature
            )
            return parse_keywords(reply or "")

        return await self._run("keywords", _invoke, lambda keywords: not keywords)

    async def embed(self, text: str) -> list[float]:
        """Return the embedding vector for *text*, truncated to the input budget."""
        bounded = text[: self._embed_max_chars]
        return await self._run("embed", lambda call: call(bounded), lambda vector: not vector)

    # ------------------------------------------------------------------
    # Fallback loop
    # ------------------------------------------------------------------

    async def _run(
        self,
        operation: str,
        invoke: Callable[[Callable[..., Awaitable[Any]]], Awaitable[_T]],
        is_empty: Callable[[_T], bool],
    ) -> _T:
        attempts: list[ProviderAttempt] = []
        for slot in self._chains[operation]:
            try:
                result = await asyncio.wait_for(invoke(slot.call), timeout=self._timeout)
            except asyncio.TimeoutError:
                reason = f"timed out after {self._timeout}s"
            except DocAugmentError as exc:
                reason = str(exc)
            except Exception as exc:
                # Adapter bugs fall through like provider errors.
                reason = f"{type(exc).__name__}: {exc}"
            else:
                if not is_empty(result):
                    logger.info("provider_succeeded", operation=operation, provider=slot.name)
                    return result
                reason = "empty result"

            logger.warning(
                "provider_attempt_failed",
                operation=operation,
                provider=slot.name,
                error=reason,
            )
            attempts.append(ProviderAttempt(provider=slot.name, error=reason))

        logger.error(
            "all_providers_failed",
            operation=operation,
            attempts=[a.provider for a in attempts],
        )
        raise AllProvidersFailedError(operation, attempts)


def _is_blank(text: str | None) -> bool:
    return not text or not text.strip()
