"""
Test Image Definition.

Renders the health-checked Dockerfile and packs it into an in-memory
build context.
"""

import io
import tarfile
import time

DOCKERFILE_TEMPLATE = """
FROM {base_image}
HEALTHCHECK --interval={interval} --timeout={timeout} --retries={retries} CMD {cmd}
CMD ["sh", "-c", "sleep {sleep}"]
"""


def render_dockerfile(settings) -> str:
    """Render the Dockerfile for the given settings."""
    return DOCKERFILE_TEMPLATE.format(
        base_image=settings.base_image,
        interval=settings.healthcheck_interval,
        timeout=settings.healthcheck_timeout,
        retries=settings.healthcheck_retries,
        cmd=settings.healthcheck_cmd,
        sleep=settings.image_sleep,
    )


def build_context(dockerfile: str) -> io.BytesIO:
    """Pack ``dockerfile`` as the only member of a tar archive."""
    data = dockerfile.encode("utf-8")
    buf = io.BytesIO()

    with tarfile.open(fileobj=buf, mode="w") as tar:
        info = tarfile.TarInfo(name="Dockerfile")
        info.size = len(data)
        info.mtime = int(time.time())
        tar.addfile(info, io.BytesIO(data))

    buf.seek(0)
    return buf
