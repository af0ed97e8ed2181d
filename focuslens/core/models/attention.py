# core/models/attention.py

class TextAttention:
    def __init__(self, id, url, text, timestamp):
        self.id = id
        self.url = url
        self.text = text
        self.timestamp = timestamp  # epoch ms

    def to_dict(self) -> dict:
        return {"url": self.url, "text": self.text, "timestamp": self.timestamp}

    def __repr__(self):
        return f"<TextAttention id={self.id} url={self.url} ts={self.timestamp}>"


class ImageAttention:
    def __init__(self, id, url, src, caption, timestamp):
        self.id = id
        self.url = url
        self.src = src
        self.caption = caption
        self.timestamp = timestamp

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "src": self.src,
            "caption": self.caption,
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return f"<ImageAttention id={self.id} url={self.url} src={self.src}>"


class VideoAttention:
    def __init__(self, video_id, title, channel_name, caption, active_watch_time_ms, timestamp):
        self.video_id = video_id
        self.title = title
        self.channel_name = channel_name
        self.caption = caption                      # concatenated transcript
        self.active_watch_time_ms = active_watch_time_ms
        self.timestamp = timestamp                  # last update

    def to_dict(self) -> dict:
        return {
            "videoId": self.video_id,
            "title": self.title,
            "channelName": self.channel_name,
            "caption": self.caption,
            "activeWatchTimeMs": self.active_watch_time_ms,
            "timestamp": self.timestamp,
        }

    def __repr__(self):
        return f"<VideoAttention video_id={self.video_id} title={self.title!r}>"
