"""Weekwise core library: data model, planning engine and state store.

Public API re-exports for convenient imports:
    from weekwise import load_state, predict_all_goals, get_weekly_analytics, ...
"""

# Workspace & paths
from weekwise.workspace import (
    workspace_root,
    settings_path,
    state_path,
    load_settings,
    save_settings,
    set_user_timezone,
    get_user_timezone,
    now_local,
    today_str,
)

# File I/O
from weekwise.fileio import (
    WorkspaceFileError,
    backup_path,
    read_text,
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Time utilities
from weekwise.timeutil import (
    MINUTES_IN_DAY,
    minutes_to_time_string,
    time_string_to_minutes,
    format_duration,
    get_day_name,
    block_duration_minutes,
    parse_timestamp,
)

# Models
from weekwise.models import (
    CONFIDENCE_LEVELS,
    PRIORITY_LABELS,
    ActivityType,
    Goal,
    GoalDraft,
    Routine,
    RoutineBlock,
    BlockDraft,
    TrackingEntry,
    AppState,
    ValidationError,
    ValidationResult,
    WeeklyBreakdown,
    WeeklyAnalytics,
    PredictionResult,
)

# Engine
from weekwise.validation import (
    validate_routine_block,
    find_overlapping_blocks,
    validate_goal,
)
from weekwise.analytics import (
    MINUTES_IN_WEEK,
    get_week_start,
    get_routine_breakdown,
    get_tracked_breakdown,
    get_weekly_analytics,
)
from weekwise.prediction import (
    get_weekly_minutes_for_activity_type,
    predict_goal_completion,
    predict_all_goals,
)

# Defaults
from weekwise.defaults import DEFAULT_ACTIVITY_TYPES, create_default_activity_types

# Store
from weekwise.store import (
    find_activity_type,
    find_goal,
    find_routine,
    find_block,
    get_active_routine,
    add_activity_type,
    update_activity_type,
    activity_type_in_use,
    delete_activity_type,
    reorder_activity_types,
    add_goal,
    update_goal,
    delete_goal,
    log_minutes_to_goal,
    set_goal_status,
    add_routine,
    rename_routine,
    delete_routine,
    set_active_routine,
    duplicate_routine,
    add_routine_block,
    update_routine_block,
    delete_routine_block,
    copy_day_blocks,
    create_initial_state,
    initialize_defaults,
    reset_state,
    load_state,
    save_state,
)

# Tracking
from weekwise.tracking import (
    find_entry,
    get_current_entry,
    start_tracking,
    stop_tracking,
    add_completed_entry,
    update_tracking_entry,
    delete_tracking_entry,
)
