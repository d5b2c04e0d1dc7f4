"""Bundled sample content.

Served by the mock agent server and used as fallbacks when a scenario's
real source cannot be reached.
"""

from __future__ import annotations

SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head><title>Herman Melville - Moby-Dick</title></head>
<body>
<h1>Herman Melville - Moby-Dick</h1>
<p>Availing himself of the mild, summer-cool weather that now reigned in these latitudes, \
and in preparation for the peculiarly active pursuits shortly to be anticipated, Perth, \
the begrimed, blistered old blacksmith, had not removed his portable forge to the hold again. \
Most of the working hours were spent in the open air.</p>
<h2>The Forge</h2>
<p>Now, the mariners were forever coming to the forge with lances and harpoons to be mended. \
The blacksmith worked patiently at every task.</p>
</body>
</html>
"""

FALLBACK_HTML = (
    "<html><body><h1>Sample HTML</h1>"
    "<p>This is fallback content for testing.</p></body></html>"
)

SAMPLE_USERS: list[dict[str, object]] = [
    {"id": 1, "name": "Leanne Graham", "username": "Bret", "email": "Sincere@april.biz"},
    {"id": 2, "name": "Ervin Howell", "username": "Antonette", "email": "Shanna@melissa.tv"},
    {"id": 3, "name": "Clementine Bauch", "username": "Samantha", "email": "Nathan@yesenia.net"},
    {"id": 4, "name": "Patricia Lebsack", "username": "Karianne", "email": "Julianne.OConner@kory.org"},
    {"id": 5, "name": "Chelsey Dietrich", "username": "Kamren", "email": "Lucio_Hettinger@annie.ca"},
]

FALLBACK_USERS: list[dict[str, object]] = [
    {"id": 1, "name": "Sample User", "email": "user@example.com"},
]

DEMO_DOC = """# Demo Document

## What is MTTR?

MTTR (Mean Time To Recovery) is the average time it takes to restore service after a \
failure occurs. This is a key metric for measuring system resilience.

## Why use exponential backoff with jitter?

Exponential backoff with jitter helps prevent thundering herd problems by randomizing \
retry delays, making systems more resilient during high load situations.

## What is a loop arrest?

A loop arrest stops an agent that keeps repeating the same failing action. After a fixed \
number of identical attempts the step is abandoned and a fallback is used instead.
"""
