"""Domain services: AI orchestration, chunking, search and chat."""

from docaugment.services.ai_orchestrator import AIOrchestrator, ProviderSlot
from docaugment.services.chat_service import ChatService
from docaugment.services.chunker import SentenceChunker
from docaugment.services.search_service import SearchService

__all__ = ["AIOrchestrator", "ChatService", "ProviderSlot", "SearchService", "SentenceChunker"]
