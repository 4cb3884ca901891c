import uuid

DEFAULT_VIDEO_BASE_URL = "https://meet.jit.si"


def make_video_link_generator(base_url: str = DEFAULT_VIDEO_BASE_URL):
    """Return a callable producing one unguessable meeting URL per call."""
    base = (base_url or DEFAULT_VIDEO_BASE_URL).rstrip("/")

    def generate() -> str:
        return f"{base}/InterviewSync-{uuid.uuid4().hex}"

    return generate
