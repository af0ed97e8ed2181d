# core/models/website_visit.py

class WebsiteVisit:
    def __init__(
        self,
        url,
        title,
        metadata,
        opened_at,
        closed_at=None,
        active_time_ms=0,
        referrer=None,
        summary=None,
        summary_generated_with_n_attentions=None,
    ):
        self.url = url                    # natural key
        self.title = title
        self.metadata = metadata or {}    # dict[str, str]
        self.opened_at = opened_at        # epoch ms
        self.closed_at = closed_at        # epoch ms or None while open
        self.active_time_ms = active_time_ms
        self.referrer = referrer
        self.summary = summary
        self.summary_generated_with_n_attentions = summary_generated_with_n_attentions

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "title": self.title,
            "metadata": dict(self.metadata),
            "openedAt": self.opened_at,
            "closedAt": self.closed_at,
            "activeTimeMs": self.active_time_ms,
            "referrer": self.referrer,
            "summary": self.summary,
            "summaryGeneratedWithNAttentions": self.summary_generated_with_n_attentions,
        }

    def __repr__(self):
        return f"<WebsiteVisit url={self.url} opened_at={self.opened_at} closed_at={self.closed_at}>"
