#!/usr/bin/env python3
"""Weekwise TUI: terminal dashboard for routines, goals and time tracking."""

from __future__ import annotations

import logging
import sys
from datetime import date

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Markdown,
    Static,
)

from weekwise import (
    AppState,
    PRIORITY_LABELS,
    workspace_root,
    now_local,
    load_state,
    save_state,
    get_active_routine,
    find_activity_type,
    find_goal,
    get_current_entry,
    start_tracking,
    stop_tracking,
    get_week_start,
    get_weekly_analytics,
    predict_all_goals,
    format_duration,
    minutes_to_time_string,
    get_day_name,
)


# ── Rendering helpers ──────────────────────────────────────────


def week_markdown(state: AppState, today: date) -> str:
    """Planned vs. tracked table for the week containing *today*."""
    routine = get_active_routine(state)
    analytics = get_weekly_analytics(routine, state.tracking_entries, get_week_start(today), state.activity_types)

    lines = [f"### Week of {analytics.week_start}", ""]
    if not analytics.breakdown:
        lines.append("*(nothing planned or tracked yet)*")
        return "\n".join(lines)

    lines.append("| Activity | Planned | Tracked | % of week |")
    lines.append("|---|---|---|---|")
    for b in analytics.breakdown:
        lines.append(
            f"| {b.activity_type_name} | {format_duration(b.planned_minutes)} "
            f"| {format_duration(b.actual_minutes)} | {b.percentage_of_week:.1f}% |"
        )
    lines.append("")
    lines.append(
        f"Planned {format_duration(analytics.total_planned_minutes)}, "
        f"tracked {format_duration(analytics.total_tracked_minutes)}, "
        f"unallocated {format_duration(analytics.unallocated_minutes)}."
    )
    return "\n".join(lines)


def goal_rows(state: AppState, today: date) -> list[tuple[str, ...]]:
    """One row per goal: name, activity, priority, progress, status and forecast."""
    routine = get_active_routine(state)
    predictions = {}
    if routine is not None:
        for p in predict_all_goals(state.goals, routine, state.tracking_entries, today):
            predictions[p.goal_id] = p

    rows = []
    for g in sorted(state.goals, key=lambda g: (g.status != "active", g.priority)):
        at = find_activity_type(state, g.activity_type_id)
        p = predictions.get(g.id)
        if p is None:
            when, weeks, confidence = "", "", ""
        else:
            when = p.predicted_completion_date or "add routine blocks"
            weeks = "" if p.weeks_remaining is None else f"{p.weeks_remaining:.1f}"
            confidence = p.confidence_level
        rows.append((
            g.name,
            at.name if at else "?",
            PRIORITY_LABELS.get(g.priority, str(g.priority)),
            f"{format_duration(g.logged_minutes)} / {format_duration(g.estimated_minutes)}",
            g.status,
            when,
            weeks,
            confidence,
        ))
    return rows


def routine_rows(state: AppState) -> list[tuple[str, ...]]:
    """Blocks of the active routine, by day then start time."""
    routine = get_active_routine(state)
    if routine is None:
        return []
    rows = []
    for day in range(7):
        for b in routine.blocks_for_day(day):
            at = find_activity_type(state, b.activity_type_id)
            goal = find_goal(state, b.goal_id) if b.goal_id else None
            rows.append((
                get_day_name(day, short=True),
                minutes_to_time_string(b.start_minutes),
                minutes_to_time_string(b.end_minutes),
                format_duration(b.duration_minutes()),
                at.name if at else "?",
                goal.name if goal else "",
            ))
    return rows


def tracking_summary(state: AppState) -> str:
    entry = get_current_entry(state)
    if entry is None:
        return "Not tracking. Type an activity name below to start."
    at = find_activity_type(state, entry.activity_type_id)
    elapsed = entry.elapsed_minutes(now_local()) or 0
    goal = find_goal(state, entry.goal_id) if entry.goal_id else None
    label = at.name if at else entry.activity_type_id
    if goal is not None:
        label += f" → {goal.name}"
    return f"⏱  {label}  {format_duration(elapsed)}"


# ── Styles ─────────────────────────────────────────────────────

CSS = """
#main-layout {
    height: 1fr;
}

#left-pane {
    width: 1fr;
    padding: 0 1;
    border-right: tall $primary-background-darken-2;
}

#right-pane {
    width: 1fr;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $accent;
    margin: 1 0 0 0;
}

#tracking-info {
    height: auto;
    padding: 1 2;
    margin: 0 0 1 0;
    border: tall $primary-background-darken-2;
}

#predictions-table, #goals-table, #routine-table {
    height: 1fr;
}

.overlay-screen {
    padding: 1 2;
}
"""


# ── Screens ────────────────────────────────────────────────────


class RoutineScreen(Vertical):
    """Active routine as a data table."""

    def compose(self) -> ComposeResult:
        yield Label("Routine", classes="section-title")
        yield DataTable(id="routine-table")

    def on_mount(self) -> None:
        state = load_state()
        routine = get_active_routine(state)
        title = self.query_one(Label)
        title.update(f"Routine: {routine.name}" if routine else "Routine: (none active)")

        table: DataTable = self.query_one("#routine-table", DataTable)
        table.add_columns("Day", "Start", "End", "Length", "Activity", "Goal")
        for row in routine_rows(state):
            table.add_row(*row)


class GoalsScreen(Vertical):
    """All goals with progress and forecasts."""

    def compose(self) -> ComposeResult:
        yield Label("Goals", classes="section-title")
        yield DataTable(id="goals-table")

    def on_mount(self) -> None:
        state = load_state()
        table: DataTable = self.query_one("#goals-table", DataTable)
        table.add_columns("Goal", "Activity", "Priority", "Progress", "Status", "Done by", "Weeks", "Confidence")
        for row in goal_rows(state, now_local().date()):
            table.add_row(*row)


# ── Main app ───────────────────────────────────────────────────


class WeekwiseApp(App):
    """Weekly routine planner and time tracker."""

    TITLE = "Weekwise"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("d", "show_dashboard", "Dashboard"),
        Binding("o", "show_routine", "Routine"),
        Binding("g", "show_goals", "Goals"),
        Binding("x", "stop_tracking", "Stop"),
        Binding("u", "reload", "Refresh"),
        Binding("escape", "blur_focus", "Back"),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("dashboard")

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            VerticalScroll(
                Label("This week", classes="section-title"),
                Markdown(id="week-viewer"),
                id="left-pane",
                can_focus=False,
            ),
            Vertical(
                Label("Tracking", classes="section-title"),
                Static(id="tracking-info"),
                Input(placeholder="Activity to track…", id="quick-start"),
                Label("Goal forecasts", classes="section-title"),
                DataTable(id="predictions-table"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#predictions-table", DataTable)
        table.add_columns("Goal", "Progress", "Done by", "Confidence")
        self._load_data()
        self.set_interval(30, self._refresh_tracking)

    def _load_data(self) -> None:
        state = load_state()
        today = now_local().date()
        routine = get_active_routine(state)

        self.query_one("#week-viewer", Markdown).update(week_markdown(state, today))
        self.query_one("#tracking-info", Static).update(tracking_summary(state))

        table = self.query_one("#predictions-table", DataTable)
        table.clear()
        for name, _activity, _priority, progress, status, when, _weeks, confidence in goal_rows(state, today):
            if status == "active":
                table.add_row(name, progress, when, confidence)

        self.sub_title = routine.name if routine else "no active routine"

    def _refresh_tracking(self) -> None:
        self.query_one("#tracking-info", Static).update(tracking_summary(load_state()))

    # ── Tracking ───────────────────────────────────────────────

    @on(Input.Submitted, "#quick-start")
    def _on_quick_start(self, event: Input.Submitted) -> None:
        name = event.value.strip().lower()
        if not name:
            return
        event.input.value = ""
        self._start(name)

    @work(thread=True)
    def _start(self, name: str) -> None:
        root = workspace_root()
        state = load_state(root)
        matches = [a for a in state.activity_types if a.name.lower().startswith(name)]
        if not matches:
            self.call_from_thread(self.notify,
                f"No activity type matches {name!r}", title="Tracking", severity="warning")
            return
        _entry, errors = start_tracking(state, matches[0].id, now=now_local(root))
        if errors:
            self.call_from_thread(self.notify, "; ".join(errors), title="Tracking", severity="error")
            return
        save_state(state, root)
        self.call_from_thread(self.notify, f"Tracking {matches[0].name}", title="Tracking")
        self.call_from_thread(self._load_data)

    def action_stop_tracking(self) -> None:
        self._stop()

    @work(thread=True)
    def _stop(self) -> None:
        root = workspace_root()
        state = load_state(root)
        entry = stop_tracking(state, now=now_local(root))
        if entry is None:
            self.call_from_thread(self.notify, "Nothing is being tracked", title="Tracking")
            return
        save_state(state, root)
        minutes = entry.elapsed_minutes() or 0
        self.call_from_thread(self.notify, f"Stopped after {format_duration(minutes)}", title="Tracking")
        self.call_from_thread(self._load_data)

    # ── Screen switching via overlay ───────────────────────────

    def action_show_routine(self) -> None:
        if self.current_view == "routine":
            self.action_show_dashboard()
            return
        self._switch_to("routine")

    def action_show_goals(self) -> None:
        if self.current_view == "goals":
            self.action_show_dashboard()
            return
        self._switch_to("goals")

    def action_show_dashboard(self) -> None:
        self._switch_to("dashboard")

    def action_reload(self) -> None:
        view = self.current_view
        self._load_data()
        if view != "dashboard":
            self._switch_to(view)

    def action_blur_focus(self) -> None:
        self.set_focus(None)

    def action_quit_app(self) -> None:
        self.exit()

    def _switch_to(self, view: str) -> None:
        main = self.query_one("#main-layout", Horizontal)

        for old in self.query(".overlay-screen"):
            old.remove()

        panes = [self.query_one("#left-pane"), self.query_one("#right-pane")]
        if view == "dashboard":
            for pane in panes:
                pane.display = True
            self.current_view = "dashboard"
            return

        for pane in panes:
            pane.display = False
        if view == "routine":
            main.mount(RoutineScreen(classes="overlay-screen"))
        elif view == "goals":
            main.mount(GoalsScreen(classes="overlay-screen"))
        self.current_view = view


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set WEEKWISE_ROOT or create the directory first.")
        sys.exit(1)

    logging.basicConfig(
        filename=str(root / "weekwise.log"),
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = WeekwiseApp()
    app.run()


if __name__ == "__main__":
    main()
