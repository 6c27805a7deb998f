"""Sequence diagram layout: lifeline columns and one row per step."""

from __future__ import annotations

from mermaid_configurable.layout.types import (
    FrameBox,
    LayoutConfig,
    MessageRow,
    NoteBox,
    ParticipantBox,
    SequenceLayout,
)
from mermaid_configurable.syntax.types import Message, SequenceDiagram

MIN_PARTICIPANT_WIDTH = 100.0
MIN_NOTE_WIDTH = 100.0
MESSAGE_GAP = 40.0
SELF_CALL_WIDTH = 40.0
SELF_CALL_HEIGHT = 30.0
FRAME_HEADER = 30.0
FRAME_INSET = 10.0


def _column_gaps(diagram: SequenceDiagram, widths: list[float], config: LayoutConfig) -> list[float]:
    index = {p.id: i for i, p in enumerate(diagram.participants)}
    gaps = [widths[i] / 2 + widths[i + 1] / 2 + config.node_spacing for i in range(len(widths) - 1)]
    for step in diagram.steps:
        if not isinstance(step, Message):
            continue
        text_w, _ = config.text_size(_message_text(step))
        a, b = index[step.from_id], index[step.to_id]
        if a == b:
            if a < len(gaps):
                gaps[a] = max(gaps[a], text_w + SELF_CALL_WIDTH + widths[a + 1] / 2)
            continue
        lo, hi = min(a, b), max(a, b)
        need = text_w + MESSAGE_GAP
        current = sum(gaps[lo:hi])
        if need > current:
            gaps[hi - 1] += need - current
    return gaps


def _message_text(message: Message) -> str:
    return f"{message.number}. {message.text}" if message.number is not None else message.text


def layout_sequence(diagram: SequenceDiagram, config: LayoutConfig | None = None) -> SequenceLayout:
    config = config or LayoutConfig()
    widths = [
        max(config.text_size(p.label)[0] + 2 * config.node_padding_x, MIN_PARTICIPANT_WIDTH)
        for p in diagram.participants
    ]
    header = max((config.text_size(p.label)[1] for p in diagram.participants), default=0.0)
    header += 2 * config.node_padding_y
    gaps = _column_gaps(diagram, widths, config)

    xs: list[float] = []
    x = widths[0] / 2 if widths else 0.0
    for i in range(len(widths)):
        xs.append(x)
        if i < len(gaps):
            x += gaps[i]
    column = {p.id: xs[i] for i, p in enumerate(diagram.participants)}
    participants = [
        ParticipantBox(p.id, p.label, xs[i], widths[i], p.actor) for i, p in enumerate(diagram.participants)
    ]

    messages: list[MessageRow] = []
    notes: list[NoteBox] = []
    frame_tops: dict[int, float] = {}
    dividers: dict[int, list[tuple[float, str]]] = {i: [] for i in range(len(diagram.frames))}
    frame_bottoms: dict[int, float] = {}
    step_extents: list[tuple[float, float]] = []
    y = header + config.rank_spacing / 2

    def close_frames(at: int) -> None:
        nonlocal y
        ending = [
            i
            for i, f in enumerate(diagram.frames)
            if f.end == at and i in frame_tops and i not in frame_bottoms
        ]
        for i in sorted(ending, key=lambda i: -diagram.frames[i].depth):
            y += FRAME_INSET
            frame_bottoms[i] = y

    for k, step in enumerate([*diagram.steps, None]):
        close_frames(k)
        for i, frame in enumerate(diagram.frames):
            for start, label in frame.sections:
                if start == k:
                    y += FRAME_HEADER / 2
                    dividers[i].append((y, label))
                    y += FRAME_HEADER / 2
        for i, frame in sorted(enumerate(diagram.frames), key=lambda item: item[1].depth):
            if frame.start == k and i not in frame_tops:
                frame_tops[i] = y
                y += FRAME_HEADER
        close_frames(k)
        if step is None:
            break

        if isinstance(step, Message):
            text_w, text_h = config.text_size(_message_text(step))
            y += text_h + 4
            fx, tx = column[step.from_id], column[step.to_id]
            self_call = step.from_id == step.to_id
            messages.append(MessageRow(fx, tx, y, _message_text(step), step.kind, self_call))
            if self_call:
                step_extents.append((fx, fx + max(SELF_CALL_WIDTH, text_w)))
                y += SELF_CALL_HEIGHT
            else:
                step_extents.append((min(fx, tx), max(fx, tx)))
            y += config.node_padding_y * 2
        else:
            text_w, text_h = config.text_size(step.text)
            width = max(text_w + 2 * config.node_padding_x, MIN_NOTE_WIDTH)
            height = text_h + 2 * config.node_padding_y
            anchors = [column[pid] for pid in step.participant_ids]
            if step.placement == "left":
                note_x = anchors[0] - FRAME_INSET - width
            elif step.placement == "right":
                note_x = anchors[0] + FRAME_INSET
            else:
                span = max(anchors) - min(anchors)
                width = max(width, span + 2 * config.node_padding_x)
                note_x = (min(anchors) + max(anchors)) / 2 - width / 2
            notes.append(NoteBox(note_x, y, width, height, step.text))
            step_extents.append((note_x, note_x + width))
            y += height + config.node_padding_y

    frames: list[FrameBox] = []
    all_left = min((p.x - p.width / 2 for p in participants), default=0.0)
    all_right = max((p.x + p.width / 2 for p in participants), default=0.0)
    for i, frame in enumerate(diagram.frames):
        inside = step_extents[frame.start : frame.end]
        inset = FRAME_INSET * (frame.depth + 1)
        inner_left = min((e[0] for e in inside), default=all_left) - 2 * config.node_padding_x
        inner_right = max((e[1] for e in inside), default=all_right) + 2 * config.node_padding_x
        left, right = inner_left - inset, inner_right + inset
        top = frame_tops[i]
        frames.append(
            FrameBox(frame.kind, frame.label, left, top, right - left, frame_bottoms[i] - top, dividers[i])
        )

    lifeline_end = y + config.rank_spacing / 2
    xs_all = [p.x - p.width / 2 for p in participants] + [p.x + p.width / 2 for p in participants]
    xs_all += [n.x for n in notes] + [n.x + n.width for n in notes]
    xs_all += [f.x for f in frames] + [f.x + f.width for f in frames]
    xs_all += [e[1] for e in step_extents]
    shift = config.margin - min(xs_all, default=0.0)
    for p in participants:
        p.x += shift
    for m in messages:
        m.from_x += shift
        m.to_x += shift
    for n in notes:
        n.x += shift
    for f in frames:
        f.x += shift
    for box in (*notes, *frames):
        box.y += config.margin
    for m in messages:
        m.y += config.margin
    for f in frames:
        f.dividers = [(dy + config.margin, label) for dy, label in f.dividers]

    width = max(xs_all, default=0.0) + shift + config.margin
    height = lifeline_end + header + 2 * config.margin
    return SequenceLayout(
        participants=participants,
        messages=messages,
        notes=notes,
        frames=frames,
        header_height=header,
        lifeline_end=lifeline_end + config.margin,
        width=width,
        height=height,
        title=diagram.title,
    )
