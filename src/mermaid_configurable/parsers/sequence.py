"""Sequence diagram parser.

Line oriented: every non-blank, non-comment line is one statement.
"""

from __future__ import annotations

import re

from mermaid_configurable.errors import DiagramSyntaxError
from mermaid_configurable.syntax.types import Frame, Message, MessageKind, Note, Participant, SequenceDiagram

_ARROWS: dict[str, MessageKind] = {
    "-->>": MessageKind.DottedArrow,
    "->>": MessageKind.SolidArrow,
    "--x": MessageKind.DottedCross,
    "-x": MessageKind.SolidCross,
    "--)": MessageKind.DottedOpen,
    "-)": MessageKind.SolidOpen,
    "-->": MessageKind.Dotted,
    "->": MessageKind.Solid,
}

_ID = r"[\w.]+"
_MESSAGE_RE = re.compile(
    rf"^({_ID})\s*({'|'.join(re.escape(a) for a in _ARROWS)})\s*[+-]?\s*({_ID})\s*:(.*)$"
)
_PARTICIPANT_RE = re.compile(rf"^(participant|actor)\s+({_ID})(?:\s+as\s+(.+))?$")
_NOTE_RE = re.compile(rf"^note\s+(left of|right of|over)\s+({_ID})(?:\s*,\s*({_ID}))?\s*:(.*)$", re.IGNORECASE)
_FRAME_RE = re.compile(r"^(loop|alt|opt|par|critical|break|rect)\b(.*)$")
_SECTION_RE = re.compile(r"^(else|and|option)\b(.*)$")
_ACTIVATION_RE = re.compile(rf"^(activate|deactivate)\s+({_ID})$")
_TITLE_RE = re.compile(r"^title(?:\s*:\s*|\s+)(.*)$")


class SequenceParser:
    """sequenceDiagram parser."""

    def parse(self, src: str) -> SequenceDiagram:
        diagram = SequenceDiagram()
        open_frames: list[Frame] = []
        header_seen = False

        for lineno, raw in enumerate(src.splitlines(), start=1):
            line = raw.split("%%", 1)[0].strip().rstrip(";").strip()
            if not line:
                continue
            if not header_seen:
                if line != "sequenceDiagram":
                    raise DiagramSyntaxError("expected 'sequenceDiagram' header", line=lineno)
                header_seen = True
                continue

            if line == "autonumber":
                diagram.autonumber = True
                continue
            if _ACTIVATION_RE.match(line):
                continue

            m = _PARTICIPANT_RE.match(line)
            if m:
                kind, pid, alias = m.groups()
                label = alias.strip() if alias else pid
                existing = diagram.participant(pid)
                if existing is None:
                    diagram.participants.append(Participant(pid, label, actor=kind == "actor"))
                else:
                    existing.label, existing.actor = label, kind == "actor"
                continue

            m = _MESSAGE_RE.match(line)
            if m:
                from_id, arrow, to_id, text = m.groups()
                _ensure_participant(diagram, from_id)
                _ensure_participant(diagram, to_id)
                diagram.steps.append(Message(from_id, to_id, text.strip(), _ARROWS[arrow]))
                continue

            m = _TITLE_RE.match(line)
            if m:
                diagram.title = m.group(1).strip() or None
                continue

            m = _NOTE_RE.match(line)
            if m:
                placement, first, second, text = m.groups()
                ids = [first] if second is None else [first, second]
                for pid in ids:
                    _ensure_participant(diagram, pid)
                diagram.steps.append(Note(placement.lower().split()[0], ids, text.strip()))
                continue

            m = _FRAME_RE.match(line)
            if m:
                frame = Frame(kind=m.group(1), label=m.group(2).strip(), start=len(diagram.steps))
                frame.depth = len(open_frames)
                open_frames.append(frame)
                diagram.frames.append(frame)
                continue

            m = _SECTION_RE.match(line)
            if m:
                if not open_frames:
                    raise DiagramSyntaxError(f"'{m.group(1)}' outside of a block", line=lineno)
                open_frames[-1].sections.append((len(diagram.steps), m.group(2).strip()))
                continue

            if line == "end":
                if not open_frames:
                    raise DiagramSyntaxError("'end' without an open block", line=lineno)
                open_frames.pop().end = len(diagram.steps)
                continue

            raise DiagramSyntaxError(f"unrecognized statement '{line}'", line=lineno)

        if not header_seen:
            raise DiagramSyntaxError("expected 'sequenceDiagram' header")
        if open_frames:
            raise DiagramSyntaxError(f"'{open_frames[-1].kind}' block is missing 'end'")

        if diagram.autonumber:
            count = 0
            for step in diagram.steps:
                if isinstance(step, Message):
                    count += 1
                    step.number = count
        return diagram


def _ensure_participant(diagram: SequenceDiagram, participant_id: str) -> None:
    if diagram.participant(participant_id) is None:
        diagram.participants.append(Participant(participant_id, participant_id))
