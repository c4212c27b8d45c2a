"""
Database models package
"""
from intranet.models.profile import Profile
from intranet.models.setting import Setting
from intranet.models.mandatory_content import (
    MandatoryContent,
    MandatoryContentSignature,
    MandatoryContentReminder,
)
from intranet.models.announcement import Announcement, AnnouncementLike, AnnouncementView
from intranet.models.notification import Notification, NotificationTemplate
from intranet.models.idea import Idea, IdeaVote
from intranet.models.campaign import Campaign, CampaignResult
from intranet.models.survey import Survey, SurveyResponse
from intranet.models.checklist import Checklist, ChecklistResponse
from intranet.models.mural import MuralPost
from intranet.models.training import (
    Training,
    TrainingProgress,
    TrainingCertificate,
    TrainingPath,
    TrainingPathItem,
)

__all__ = [
    "Profile",
    "Setting",
    "MandatoryContent",
    "MandatoryContentSignature",
    "MandatoryContentReminder",
    "Announcement",
    "AnnouncementLike",
    "AnnouncementView",
    "Notification",
    "NotificationTemplate",
    "Idea",
    "IdeaVote",
    "Campaign",
    "CampaignResult",
    "Survey",
    "SurveyResponse",
    "Checklist",
    "ChecklistResponse",
    "MuralPost",
    "Training",
    "TrainingProgress",
    "TrainingCertificate",
    "TrainingPath",
    "TrainingPathItem",
]
