# core/models/activity_summary.py

class ActivitySummary:
    def __init__(self, id, summary, timestamp):
        self.id = id
        self.summary = summary        # "You are learning React hooks"
        self.timestamp = timestamp    # epoch ms

    def to_dict(self) -> dict:
        return {"id": self.id, "summary": self.summary, "timestamp": self.timestamp}

    def __repr__(self):
        return f"<ActivitySummary id={self.id} summary={self.summary!r} ts={self.timestamp}>"
