"""
View — renders the single chat page from session state.

Pure functions only: same state in, same HTML out. The markup lives in
templates/index.html; Jinja2 autoescaping covers every user-supplied string.
"""

from jinja2 import Environment, PackageLoader

MODE_DISCONNECTED = "disconnected"
MODE_CHAT = "chat"
MODE_NO_ACCESS = "no_access"

env = Environment(
    loader=PackageLoader("grock_gate", "templates"),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_mode(state) -> str:
    if not state.connected:
        return MODE_DISCONNECTED
    return MODE_CHAT if state.has_access else MODE_NO_ACCESS


def render_page(state, transcript, policy) -> str:
    return env.get_template("index.html").render(
        mode=render_mode(state),
        state=state,
        transcript=transcript,
        policy=policy,
    )
