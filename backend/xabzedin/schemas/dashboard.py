from pydantic import BaseModel


class DashboardResponse(BaseModel):
    role: str | None
    needs_role_selection: bool = False
    redirect_to: str | None = None

    # Seeker
    applications_count: int | None = None
    experiences_count: int | None = None
    education_count: int | None = None

    # Employer
    has_company: bool | None = None
    jobs_count: int | None = None
    received_applications_count: int | None = None
