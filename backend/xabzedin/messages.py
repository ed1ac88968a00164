"""User-facing messages, keyed by a stable code.

API errors carry both the code and the message rendered in
``settings.locale``; clients that localize on their own can switch on the code.
"""

from xabzedin.config import settings

DEFAULT_LOCALE = "tr"

MESSAGES: dict[str, dict[str, str]] = {
    "tr": {
        # Auth
        "auth_required": "Lütfen giriş yapın",
        "invalid_credentials": "E-posta veya şifre hatalı.",
        "email_not_confirmed": "Lütfen e-posta adresinizi doğrulayın.",
        "email_taken": "Bu e-posta adresiyle kayıtlı bir hesap zaten var.",
        "password_too_short": "Şifre en az {min_length} karakter olmalıdır.",
        "passwords_do_not_match": "Şifreler eşleşmiyor",
        "invalid_token": "Bağlantı geçersiz veya süresi dolmuş.",
        "role_required": "Bu işlem için yetkiniz yok.",
        # Referrals
        "invalid_referral_code": "Girdiğiniz referans kodu geçersiz veya daha önce kullanılmış.",
        "no_referral_rights": "Referans kodu oluşturma hakkınız bulunmuyor.",
        "active_referral_code_exists": "Henüz kullanılmamış bir referans kodunuz zaten var.",
        "referral_code_generation_failed": "Referans kodu oluşturulamadı, lütfen tekrar deneyin.",
        # Profiles
        "profile_not_found": "Profil bulunamadı",
        "role_already_set": "Rolünüz zaten seçilmiş.",
        "experience_not_found": "Deneyim bulunamadı",
        "education_not_found": "Eğitim bilgisi bulunamadı",
        # Companies
        "company_not_found": "Şirket bulunamadı",
        "company_exists": "Zaten bir şirket profiliniz var.",
        "company_required": "İlan yayınlamak için önce şirket profilinizi oluşturun.",
        # Jobs
        "job_not_found": "İlan bulunamadı",
        "invalid_duration": "Geçersiz ilan süresi.",
        # Applications
        "application_not_found": "Başvuru bulunamadı",
        "already_applied": "Bu ilana zaten başvurdunuz",
        # Storage
        "file_too_large": "Dosya çok büyük. Maksimum dosya boyutu 1MB olmalıdır.",
        "invalid_file_type": "Geçersiz dosya türü. Lütfen bir resim dosyası seçin.",
        # Emails
        "email_confirmation_subject": "XabzedIn: E-posta adresinizi doğrulayın",
        "email_confirmation_body": "XabzedIn hesabınızı etkinleştirmek için e-posta adresinizi doğrulayın.",
        "email_confirmation_action": "E-postamı Doğrula",
        "password_reset_subject": "XabzedIn: Şifre sıfırlama",
        "password_reset_body": "Şifrenizi sıfırlamak için aşağıdaki bağlantıyı kullanın. Bu isteği siz yapmadıysanız e-postayı yok sayabilirsiniz.",
        "password_reset_action": "Şifremi Sıfırla",
        "new_application_subject": "XabzedIn: {job_title} ilanına yeni başvuru",
        "new_application_body": "{seeker_name}, {job_title} ilanınıza başvurdu.",
        "new_application_action": "Başvuruları İncele",
    },
    "en": {
        "auth_required": "Please sign in",
        "invalid_credentials": "Incorrect email or password.",
        "email_not_confirmed": "Please confirm your email address.",
        "email_taken": "An account with this email already exists.",
        "password_too_short": "Password must be at least {min_length} characters.",
        "passwords_do_not_match": "Passwords do not match",
        "invalid_token": "The link is invalid or has expired.",
        "role_required": "You are not allowed to do this.",
        "invalid_referral_code": "The referral code is invalid or has already been used.",
        "no_referral_rights": "You have no referral code rights left.",
        "active_referral_code_exists": "You already have an unused referral code.",
        "referral_code_generation_failed": "Could not generate a referral code, please try again.",
        "profile_not_found": "Profile not found",
        "role_already_set": "Your role has already been chosen.",
        "experience_not_found": "Experience entry not found",
        "education_not_found": "Education entry not found",
        "company_not_found": "Company not found",
        "company_exists": "You already have a company profile.",
        "company_required": "Create your company profile before posting jobs.",
        "job_not_found": "Job not found",
        "invalid_duration": "Invalid listing duration.",
        "application_not_found": "Application not found",
        "already_applied": "You have already applied to this job",
        "file_too_large": "File is too large. The maximum size is 1MB.",
        "invalid_file_type": "Invalid file type. Please choose an image.",
        "email_confirmation_subject": "XabzedIn: Confirm your email address",
        "email_confirmation_body": "Confirm your email address to activate your XabzedIn account.",
        "email_confirmation_action": "Confirm my email",
        "password_reset_subject": "XabzedIn: Password reset",
        "password_reset_body": "Use the link below to reset your password. If you did not ask for this, you can ignore this email.",
        "password_reset_action": "Reset my password",
        "new_application_subject": "XabzedIn: New application for {job_title}",
        "new_application_body": "{seeker_name} applied to your listing {job_title}.",
        "new_application_action": "Review applications",
    },
}


def translate(code: str, locale: str | None = None, **params) -> str:
    """Render the message for ``code``, falling back to the default locale and then the code itself."""
    table = MESSAGES.get(locale or settings.locale) or MESSAGES[DEFAULT_LOCALE]
    template = table.get(code) or MESSAGES[DEFAULT_LOCALE].get(code, code)
    return template.format(**params) if params else template
