"""Completion provider adapters.

Three concrete implementations of ILLMProvider (docaugment/interfaces/llm_provider.py):
    - OpenAILLMProvider    -- gpt-4o-mini, or any OpenAI-compatible host (OpenRouter)
    - AnthropicLLMProvider -- Claude Sonnet
    - OllamaLLMProvider    -- local models via an Ollama server (llama3.1)

``docaugment/main.py`` builds the ones with credentials configured and hands
them, in configured order, to the AI orchestrator.
"""

from docaugment.providers.llm.anthropic_provider import AnthropicLLMProvider
from docaugment.providers.llm.ollama_provider import OllamaLLMProvider
from docaugment.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider", "OllamaLLMProvider"]
