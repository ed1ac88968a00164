from xabzedin.models.user import AuthToken, User
from xabzedin.models.profile import Education, Experience, Profile
from xabzedin.models.company import Company
from xabzedin.models.job import Job
from xabzedin.models.application import Application
from xabzedin.models.referral import ReferralCode

__all__ = [
    "User",
    "AuthToken",
    "Profile",
    "Experience",
    "Education",
    "Company",
    "Job",
    "Application",
    "ReferralCode",
]
