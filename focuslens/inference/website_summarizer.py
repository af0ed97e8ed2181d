# inference/website_summarizer.py

from __future__ import annotations

import logging

from focuslens.core.services.attention_service import AttentionService
from focuslens.core.services.visit_service import VisitService
from focuslens.inference.classifier import TextClassifier
from focuslens.inference.prompts import website_summary_prompt

logger = logging.getLogger(__name__)


class WebsiteSummarizer:
    """
    Writes a short per-visit summary of what the user paid attention to.

    A visit is (re)summarized when it has attention records and either no
    summary yet or a summary built from a different number of records.
    """

    def __init__(self, visits: VisitService, attentions: AttentionService, classifier: TextClassifier):
        self.visits = visits
        self.attentions = attentions
        self.classifier = classifier

    def run(self) -> int:
        """Returns how many visits got a new summary."""
        updated = 0
        for visit in self.visits.list_all():
            texts = self.attentions.text_for_url(visit.url)
            images = self.attentions.images_for_url(visit.url)
            videos = self.attentions.videos_for_url(visit.url)
            n_attentions = len(texts) + len(images) + len(videos)

            if n_attentions == 0:
                continue
            if visit.summary and visit.summary_generated_with_n_attentions == n_attentions:
                continue

            try:
                summary = self.classifier.classify(
                    website_summary_prompt(visit, texts, images, videos)
                ).strip()
            except Exception as e:
                logger.error("Summarizing %s failed: %s", visit.url, e)
                continue

            if not summary:
                continue

            if self.visits.update_summary(visit.url, summary, n_attentions):
                updated += 1
        return updated
