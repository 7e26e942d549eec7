"""Record browser tool calls and turn them into a pytest-playwright test."""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from server.errors import ArgumentValidationError
from server.schemas import CodegenOptions

logger = logging.getLogger(__name__)


@dataclass
class RecordedAction:
    tool: str
    parameters: Dict[str, Any]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class CodegenSession:
    id: str
    options: CodegenOptions
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None
    actions: List[RecordedAction] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "actionCount": len(self.actions),
            "actions": [
                {"tool": a.tool, "parameters": a.parameters, "timestamp": a.timestamp}
                for a in self.actions
            ],
            "options": self.options.model_dump(by_alias=True),
        }


def _slug(text: str) -> str:
    slug = re.sub(r"[^0-9a-zA-Z]+", "_", text).strip("_").lower()
    return slug or "generated"


def _action_lines(action: RecordedAction) -> List[str]:
    p = action.parameters
    tool = action.tool
    if tool == "playwright_navigate":
        return [f"page.goto({p.get('url')!r})"]
    if tool == "playwright_click":
        return [f"page.click({p.get('selector')!r})"]
    if tool == "playwright_fill":
        return [f"page.fill({p.get('selector')!r}, {p.get('value')!r})"]
    if tool == "playwright_select":
        return [f"page.select_option({p.get('selector')!r}, {p.get('value')!r})"]
    if tool == "playwright_hover":
        return [f"page.hover({p.get('selector')!r})"]
    if tool == "playwright_iframe_click":
        return [
            f"page.frame_locator({p.get('iframeSelector')!r})"
            f".locator({p.get('selector')!r}).click()"
        ]
    if tool == "playwright_iframe_fill":
        return [
            f"page.frame_locator({p.get('iframeSelector')!r})"
            f".locator({p.get('selector')!r}).fill({p.get('value')!r})"
        ]
    if tool == "playwright_upload_file":
        return [f"page.set_input_files({p.get('selector')!r}, {p.get('filePath')!r})"]
    if tool == "playwright_press_key":
        if p.get("selector"):
            return [f"page.press({p.get('selector')!r}, {p.get('key')!r})"]
        return [f"page.keyboard.press({p.get('key')!r})"]
    if tool == "playwright_drag":
        return [
            f"page.drag_and_drop({p.get('sourceSelector')!r}, "
            f"{p.get('targetSelector')!r})"
        ]
    if tool == "playwright_evaluate":
        return [f"page.evaluate({p.get('script')!r})"]
    if tool == "playwright_go_back":
        return ["page.go_back()"]
    if tool == "playwright_go_forward":
        return ["page.go_forward()"]
    if tool == "playwright_screenshot":
        full_page = bool(p.get("fullPage", False))
        return [
            f"page.screenshot(path={p.get('name', 'screenshot') + '.png'!r}, "
            f"full_page={full_page})"
        ]
    if tool == "playwright_get_visible_text":
        return ["page.inner_text('body')"]
    return [f"# {tool} has no generated equivalent"]


def generate_test_code(session: CodegenSession) -> str:
    options = session.options
    test_name = f"test_{_slug(options.test_name_prefix)}"
    lines = ["from playwright.sync_api import Page", "", ""]
    lines.append(f"def {test_name}(page: Page) -> None:")
    if options.include_comments:
        lines.append(f'    """Generated from codegen session {session.id}."""')
    if not session.actions:
        lines.append("    pass")
    for action in session.actions:
        if options.include_comments:
            lines.append(f"    # {action.tool} ({action.timestamp})")
        lines.extend(f"    {line}" for line in _action_lines(action))
    return "\n".join(lines) + "\n"


class CodegenRecorder:
    """Holds codegen sessions; at most one is recording at a time."""

    def __init__(self) -> None:
        self.sessions: Dict[str, CodegenSession] = {}
        self.active_session_id: Optional[str] = None

    @property
    def active(self) -> Optional[CodegenSession]:
        if self.active_session_id is None:
            return None
        return self.sessions.get(self.active_session_id)

    def start(self, options: CodegenOptions) -> CodegenSession:
        session = CodegenSession(id=str(uuid.uuid4()), options=options)
        self.sessions[session.id] = session
        self.active_session_id = session.id
        logger.info("Started codegen session %s", session.id)
        return session

    def record(self, tool: str, parameters: Dict[str, Any]) -> None:
        session = self.active
        if session is not None:
            session.actions.append(RecordedAction(tool=tool, parameters=parameters))

    def get(self, session_id: str) -> CodegenSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise ArgumentValidationError(f"Session {session_id} not found")
        return session

    def end(self, session_id: str) -> Tuple[Path, str]:
        """Stop recording and write the generated test file."""
        session = self.get(session_id)
        session.end_time = datetime.now().isoformat()
        if self.active_session_id == session_id:
            self.active_session_id = None

        code = generate_test_code(session)
        output_dir = Path(session.options.output_path).expanduser()
        output_dir.mkdir(parents=True, exist_ok=True)
        file_path = output_dir / (
            f"test_{_slug(session.options.test_name_prefix)}_{session.id[:8]}.py"
        )
        file_path.write_text(code, encoding="utf-8")
        logger.info("Wrote generated test for session %s to %s", session_id, file_path)
        return file_path, code

    def clear(self, session_id: str) -> None:
        self.get(session_id)
        del self.sessions[session_id]
        if self.active_session_id == session_id:
            self.active_session_id = None
