from typing import List, Optional

from models.assignment import Assignment, SubmissionStatus
from schemas.assignment import AssignmentStats, StatsSummary


class StatisticsService:
    """Submission counts behind the admin statistics view."""

    @staticmethod
    def assignment_stats(assignment: Assignment) -> AssignmentStats:
        assigned = len(assignment.assigned_to)
        # Submissions from users later removed from assignedTo still count as submitted
        submitted = len(assignment.submissions)
        grades = [
            submission.grade for submission in assignment.submissions
            if submission.status == SubmissionStatus.graded and submission.grade is not None
        ]
        graded = sum(
            1 for submission in assignment.submissions
            if submission.status == SubmissionStatus.graded
        )
        average_grade: Optional[float] = round(sum(grades) / len(grades), 2) if grades else None

        return AssignmentStats(
            id=assignment.id,
            title=assignment.title,
            deadline=assignment.deadline,
            assigned=assigned,
            submitted=submitted,
            graded=graded,
            not_submitted=max(assigned - submitted, 0),
            average_grade=average_grade,
        )

    def summarize(self, assignments: List[Assignment]) -> StatsSummary:
        per_assignment = [self.assignment_stats(assignment) for assignment in assignments]
        return StatsSummary(
            total_assignments=len(per_assignment),
            total_assigned=sum(stats.assigned for stats in per_assignment),
            total_submitted=sum(stats.submitted for stats in per_assignment),
            total_graded=sum(stats.graded for stats in per_assignment),
            total_not_submitted=sum(stats.not_submitted for stats in per_assignment),
            assignments=per_assignment,
        )
