"""DataFrames and Altair charts for the analytics and grades pages."""

from typing import Sequence

import altair as alt
import pandas as pd

from lms.analytics import CourseAnalytics
from lms.grades import GradeSummary


def activity_frame(analytics: CourseAnalytics) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"activity": a.name, "average_score": a.average_score, "attempts": a.attempts}
            for a in analytics.activity_averages
        ],
        columns=["activity", "average_score", "attempts"],
    )


def trend_frame(analytics: CourseAnalytics) -> pd.DataFrame:
    """Long-form trend series: one row per (student, attempt number)."""
    rows = []
    for trend in analytics.trends:
        for i, score in enumerate(trend.scores, 1):
            rows.append({"student": trend.label, "attempt": i, "label": f"Attempt {i}", "score": score})
    return pd.DataFrame(rows, columns=["student", "attempt", "label", "score"])


def engagement_frame(analytics: CourseAnalytics) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"student": e.label, "attempts": e.attempts} for e in analytics.engagement],
        columns=["student", "attempts"],
    )
    total = df["attempts"].sum()
    df["share"] = df["attempts"] / total if total else 0.0
    return df


def student_frame(analytics: CourseAnalytics) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Student": r.label,
                "Progress (%)": r.progress,
                "Best score": r.best_score,
                "Status": r.status,
            }
            for r in analytics.students
        ],
        columns=["Student", "Progress (%)", "Best score", "Status"],
    )


def grade_frame(report: Sequence[GradeSummary]) -> pd.DataFrame:
    rows = []
    for summary in report:
        for q in summary.graded_quizzes:
            rows.append({
                "Course": summary.course_title,
                "Quiz": q.title,
                "Score": q.score,
                "Total": q.total,
                "Percent": round(q.score / q.total * 100, 1) if q.total else None,
            })
    return pd.DataFrame(rows, columns=["Course", "Quiz", "Score", "Total", "Percent"])


def activity_chart(analytics: CourseAnalytics) -> alt.Chart:
    df = activity_frame(analytics)
    return alt.Chart(df).mark_bar(color="#58a6ff").encode(
        x=alt.X("activity:N", title="Activity", sort=None, axis=alt.Axis(labelAngle=-30)),
        y=alt.Y("average_score:Q", title="Average score"),
        tooltip=[
            alt.Tooltip("activity:N", title="Activity"),
            alt.Tooltip("average_score:Q", title="Average score", format=".2f"),
            alt.Tooltip("attempts:Q", title="Attempts"),
        ],
    ).properties(height=320)


def trend_chart(analytics: CourseAnalytics) -> alt.Chart:
    df = trend_frame(analytics)
    return alt.Chart(df).mark_line(point=True, strokeWidth=2).encode(
        x=alt.X("attempt:O", title="Attempt"),
        y=alt.Y("score:Q", title="Score"),
        color=alt.Color("student:N", title="Student"),
        tooltip=[
            alt.Tooltip("student:N", title="Student"),
            alt.Tooltip("label:N", title="Attempt"),
            alt.Tooltip("score:Q", title="Score"),
        ],
    ).properties(height=320)


def engagement_chart(analytics: CourseAnalytics) -> alt.Chart:
    df = engagement_frame(analytics)
    return alt.Chart(df).mark_arc(innerRadius=40).encode(
        theta=alt.Theta("attempts:Q"),
        color=alt.Color("student:N", title="Student"),
        tooltip=[
            alt.Tooltip("student:N", title="Student"),
            alt.Tooltip("attempts:Q", title="Submissions"),
            alt.Tooltip("share:Q", title="Share", format=".0%"),
        ],
    ).properties(height=320)
