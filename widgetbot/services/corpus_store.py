"""
Training corpus loading and caching.

The corpus lives in a JSON file shaped like
``{"faqs": [...], "knowledge": [...], "instructions": "..."}``.
It is read once and cached; ``refresh()`` drops the cache and re-reads it.
"""

import json
import os
from typing import Optional

from loguru import logger

from widgetbot.config import settings
from widgetbot.errors import CorpusError
from widgetbot.models.entities import TrainingCorpus


class CorpusStore:
    def __init__(self, path: Optional[str] = None, default_instructions: Optional[str] = None):
        self.path = path or settings.CORPUS_PATH
        self.default_instructions = (
            default_instructions if default_instructions is not None else settings.DEFAULT_INSTRUCTIONS
        )
        self._cached: Optional[TrainingCorpus] = None

    def _load(self) -> TrainingCorpus:
        if not os.path.exists(self.path):
            logger.info(f"No training corpus at {self.path}, starting with an empty one")
            return TrainingCorpus(instructions=self.default_instructions)

        try:
            with open(self.path, encoding="utf-8") as f:
                payload = json.load(f)
            corpus = TrainingCorpus.from_payload(payload, self.default_instructions)
        except (OSError, ValueError, CorpusError) as e:
            logger.error(f"Failed to load training corpus from {self.path}: {e}")
            # a broken file keeps no instructions, so completion uses the generic system prompt
            return TrainingCorpus()

        logger.info(f"Loaded training corpus: {len(corpus.faqs)} FAQs, {len(corpus.knowledge)} knowledge entries")
        return corpus

    def get(self) -> TrainingCorpus:
        if self._cached is None:
            self._cached = self._load()
        return self._cached

    def refresh(self) -> TrainingCorpus:
        self._cached = None
        return self.get()


corpus_store = CorpusStore()
