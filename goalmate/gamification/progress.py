"""
Goal progress projection

Pure, side-effect-free: called fresh on every read because module state
and generic-goal fields can change between renders. Never cached, never
written back as the source of truth for Learning goals.
"""

from goalmate.models.goal import Goal, ModuleStatus, ProgressDisplay


def _round_half_up(numerator: int, denominator: int) -> int:
    """floor(numerator / denominator + 1/2) in exact integer arithmetic"""
    return (2 * numerator + denominator) // (2 * denominator)


def calculate_progress_display(goal: Goal) -> ProgressDisplay:
    """
    Display-ready percent and text for a goal

    Learning goals weight verified modules fully and self-completed modules
    by half. Generic goals echo their stored fields.
    """
    if goal.is_learning:
        total = len(goal.modules)
        if total == 0:
            return ProgressDisplay(percent=0, text="No modules")

        verified_count = sum(1 for m in goal.modules if m.verified)
        half_count = sum(
            1 for m in goal.modules
            if m.status == ModuleStatus.COMPLETED and not m.verified
        )

        # effective = verified + 0.5 * half, scaled by 2 to stay integral
        percent = _round_half_up(100 * (2 * verified_count + half_count), 2 * total)

        return ProgressDisplay(
            percent=percent,
            text=f"{verified_count} Verified, {half_count} Self-Completed / {total} Total Modules",
        )

    percent = goal.progress_percent or 0
    text = goal.status_text or ("Completed!" if percent == 100 else "Not started")
    return ProgressDisplay(percent=percent, text=text)
