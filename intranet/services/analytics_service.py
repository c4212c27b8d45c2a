"""
Analytics service for compliance, campaign and survey reporting
"""
import csv
import io
import logging
from collections import defaultdict
from typing import Dict, List, Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from intranet.models import (
    Campaign,
    CampaignResult,
    MandatoryContent,
    MandatoryContentSignature,
    Profile,
    Survey,
    SurveyResponse,
)
from intranet.schemas.campaign import CampaignProgress, LeaderboardEntry
from intranet.schemas.mandatory_content import (
    ComplianceDashboard,
    MandatoryContentResponse,
    UserCompliance,
)
from intranet.schemas.survey import OptionCount, QuestionResults, SurveyQuestion, SurveyResults
from intranet.services.compliance_service import compliance_service
from intranet.services.grading_service import grading_service

logger = logging.getLogger(__name__)

CSV_HEADER = ["Nome", "E-mail", "Cargo", "Unidade", "Concluídos", "Pendentes", "Total Aplicável", "Status"]


class AnalyticsService:
    """Service for generating admin reports"""

    def get_compliance_dashboard(self, db: Session) -> ComplianceDashboard:
        """
        Per-user mandatory content compliance

        Args:
            db: Database session

        Returns:
            Totals, completion rate and one row per active profile
        """
        contents = db.query(MandatoryContent).filter(
            MandatoryContent.active.is_(True)
        ).order_by(MandatoryContent.created_at.desc()).all()

        profiles = db.query(Profile).filter(
            Profile.is_active.is_(True)
        ).order_by(Profile.full_name).all()

        signed = set(
            (row.content_id, row.user_id)
            for row in db.query(
                MandatoryContentSignature.content_id,
                MandatoryContentSignature.user_id
            ).filter(MandatoryContentSignature.success.is_(True)).all()
        )

        completed_total = 0
        pending_total = 0
        users = []

        for profile in profiles:
            completed = 0
            pending = 0
            applicable = 0

            for content in contents:
                if not compliance_service.role_matches_audience(profile.role, content.target_audience):
                    continue

                applicable += 1
                if (content.id, profile.id) in signed:
                    completed += 1
                else:
                    pending += 1

            completed_total += completed
            pending_total += pending

            if pending > 0:
                status = "pending"
            elif completed > 0:
                status = "completed"
            else:
                status = "not_started"

            users.append(UserCompliance(
                user_id=profile.id,
                full_name=profile.full_name,
                email=profile.email,
                role=profile.role,
                unit_code=profile.unit_code,
                completed=completed,
                pending=pending,
                total=applicable,
                status=status
            ))

        answered = completed_total + pending_total
        completion_rate = grading_service.calculate_score(completed_total, answered) if answered else 0

        return ComplianceDashboard(
            total_users=len(profiles),
            completed=completed_total,
            pending=pending_total,
            completion_rate=completion_rate,
            contents=[MandatoryContentResponse.model_validate(c) for c in contents],
            users=users
        )

    def export_compliance_csv(self, dashboard: ComplianceDashboard) -> str:
        """Render the per-user rows of the dashboard as CSV"""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)

        for user in dashboard.users:
            writer.writerow([
                user.full_name,
                user.email or "",
                user.role,
                user.unit_code or "N/A",
                user.completed,
                user.pending,
                user.total,
                user.status
            ])

        return buffer.getvalue()

    def get_campaign_progress(self, db: Session, campaign: Campaign) -> CampaignProgress:
        """Sum of results against the goal, capped at 100%"""
        current = db.query(func.coalesce(func.sum(CampaignResult.value), 0)).filter(
            CampaignResult.campaign_id == campaign.id
        ).scalar()

        current_value = float(current or 0)
        goal_value = float(campaign.goal_value or 0)
        progress = min(current_value / goal_value * 100, 100) if goal_value > 0 else 0.0

        return CampaignProgress(
            id=campaign.id,
            title=campaign.title,
            description=campaign.description,
            goal_value=goal_value,
            goal_unit=campaign.goal_unit,
            start_date=campaign.start_date,
            end_date=campaign.end_date,
            current_value=current_value,
            progress=round(progress, 2)
        )

    def get_leaderboard(self, db: Session, limit: int = 20) -> List[LeaderboardEntry]:
        """
        Rank users by achievement across active campaigns

        Achievement = sum of a user's values / sum of the goals of the
        campaigns they contributed to * 100
        """
        rows = db.query(CampaignResult, Campaign).join(
            Campaign, Campaign.id == CampaignResult.campaign_id
        ).filter(
            Campaign.is_active.is_(True),
            CampaignResult.user_id.isnot(None)
        ).all()

        totals: Dict[UUID, float] = defaultdict(float)
        goals: Dict[UUID, Dict[UUID, float]] = defaultdict(dict)

        for result, campaign in rows:
            totals[result.user_id] += float(result.value)
            goals[result.user_id][campaign.id] = float(campaign.goal_value or 0)

        if not totals:
            return []

        profiles = {
            p.id: p for p in db.query(Profile).filter(Profile.id.in_(list(totals.keys()))).all()
        }

        ranking = []
        for user_id, total_value in totals.items():
            goal_sum = sum(goals[user_id].values())
            achievement = total_value / goal_sum * 100 if goal_sum > 0 else 0.0
            profile = profiles.get(user_id)
            ranking.append({
                "user_id": user_id,
                "full_name": profile.full_name if profile else "Desconhecido",
                "unit_code": profile.unit_code if profile else None,
                "total_value": round(total_value, 2),
                "achievement": round(achievement, 2)
            })

        ranking.sort(key=lambda x: x["achievement"], reverse=True)

        return [
            LeaderboardEntry(position=position, **entry)
            for position, entry in enumerate(ranking[:limit], start=1)
        ]

    def get_survey_results(self, db: Session, survey: Survey) -> SurveyResults:
        """Per-question option counts and percentages"""
        questions = [SurveyQuestion.model_validate(q) for q in survey.questions or []]
        responses = db.query(SurveyResponse).filter(SurveyResponse.survey_id == survey.id).all()

        answers_by_question: Dict[int, List[str]] = defaultdict(list)
        for response in responses:
            for key, value in (response.answers or {}).items():
                # JSON object keys come back as strings
                answers_by_question[int(key)].append(str(value))

        question_results = []
        for index, question in enumerate(questions):
            answers = answers_by_question.get(index, [])
            total = len(answers)

            if question.type == "text":
                question_results.append(QuestionResults(
                    index=index,
                    question=question.question,
                    type=question.type,
                    total_answers=total,
                    text_answers=answers
                ))
                continue

            counts: Dict[str, int] = defaultdict(int)
            for answer in answers:
                counts[answer] += 1

            option_order = list(question.options) or sorted(counts.keys())
            option_order += [o for o in sorted(counts.keys()) if o not in option_order]

            question_results.append(QuestionResults(
                index=index,
                question=question.question,
                type=question.type,
                total_answers=total,
                options=[
                    OptionCount(
                        option=option,
                        count=counts.get(option, 0),
                        percentage=round(counts.get(option, 0) / total * 100, 1) if total else 0.0
                    )
                    for option in option_order
                ]
            ))

        return SurveyResults(
            survey_id=survey.id,
            title=survey.title,
            total_responses=len(responses),
            questions=question_results
        )

    def summarize(self, dashboard: ComplianceDashboard) -> Dict[str, Any]:
        """Compact totals used in log lines"""
        return {
            "total_users": dashboard.total_users,
            "completed": dashboard.completed,
            "pending": dashboard.pending,
            "completion_rate": dashboard.completion_rate
        }


# Global instance
analytics_service = AnalyticsService()
