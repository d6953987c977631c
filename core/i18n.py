"""
Localized messages for API responses.
"""

from typing import Optional

DEFAULT_LANGUAGE = "en"

SUPPORTED_LANGUAGES: dict[str, dict[str, str]] = {
    "en": {"name": "English", "native_name": "English"},
    "cn": {"name": "Chinese", "native_name": "中文"},
    "jp": {"name": "Japanese", "native_name": "日本語"},
    "kr": {"name": "Korean", "native_name": "한국어"},
    "de": {"name": "German", "native_name": "Deutsch"},
    "fr": {"name": "French", "native_name": "Français"},
}

# Accept-Language subtags that map onto our own language codes
_LOCALE_ALIASES = {
    "zh": "cn",
    "ja": "jp",
    "ko": "kr",
}

TRANSLATIONS: dict[str, dict[str, str]] = {
    "en": {
        "auth.success": "Authentication successful",
        "auth.failed": "Authentication failed",
        "auth.invalid_token": "Invalid authentication token",
        "credits.insufficient": "Insufficient credits",
        "generation.success": "Great! Your image has been successfully modified!",
        "generation.failed": "Image generation failed",
        "subscription.success": "Subscription activated successfully",
        "subscription.failed": "Subscription activation failed",
        "upload.success": "Image uploaded successfully",
        "upload.failed": "Image upload failed",
        "error.server": "Internal server error",
    },
    "cn": {
        "auth.success": "认证成功",
        "auth.failed": "认证失败",
        "auth.invalid_token": "无效的认证令牌",
        "credits.insufficient": "积分不足",
        "generation.success": "太好了，图片已为您修改成功！",
        "generation.failed": "图像生成失败",
        "subscription.success": "订阅激活成功",
        "subscription.failed": "订阅激活失败",
        "upload.success": "图片上传成功",
        "upload.failed": "图片上传失败",
        "error.server": "服务器内部错误",
    },
    "jp": {
        "auth.success": "認証成功",
        "auth.failed": "認証失敗",
        "auth.invalid_token": "無効な認証トークン",
        "credits.insufficient": "クレジット不足",
        "generation.success": "素晴らしい！画像が正常に修正されました！",
        "generation.failed": "画像生成失敗",
        "subscription.success": "サブスクリプション有効化成功",
        "subscription.failed": "サブスクリプション有効化失敗",
        "upload.success": "画像アップロード成功",
        "upload.failed": "画像アップロード失敗",
        "error.server": "サーバー内部エラー",
    },
    "kr": {
        "auth.success": "인증 성공",
        "auth.failed": "인증 실패",
        "auth.invalid_token": "유효하지 않은 인증 토큰",
        "credits.insufficient": "크레딧 부족",
        "generation.success": "좋습니다! 이미지가 성공적으로 수정되었습니다!",
        "generation.failed": "이미지 생성 실패",
        "subscription.success": "구독 활성화 성공",
        "subscription.failed": "구독 활성화 실패",
        "upload.success": "이미지 업로드 성공",
        "upload.failed": "이미지 업로드 실패",
        "error.server": "서버 내부 오류",
    },
    "de": {
        "auth.success": "Authentifizierung erfolgreich",
        "auth.failed": "Authentifizierung fehlgeschlagen",
        "auth.invalid_token": "Ungültiges Authentifizierungstoken",
        "credits.insufficient": "Unzureichende Credits",
        "generation.success": "Großartig! Ihr Bild wurde erfolgreich geändert!",
        "generation.failed": "Bildgenerierung fehlgeschlagen",
        "subscription.success": "Abonnement erfolgreich aktiviert",
        "subscription.failed": "Abonnementaktivierung fehlgeschlagen",
        "upload.success": "Bild erfolgreich hochgeladen",
        "upload.failed": "Bild-Upload fehlgeschlagen",
        "error.server": "Interner Serverfehler",
    },
    "fr": {
        "auth.success": "Authentification réussie",
        "auth.failed": "Échec de l'authentification",
        "auth.invalid_token": "Jeton d'authentification invalide",
        "credits.insufficient": "Crédits insuffisants",
        "generation.success": "Génial! Votre image a été modifiée avec succès!",
        "generation.failed": "Échec de la génération d'image",
        "subscription.success": "Abonnement activé avec succès",
        "subscription.failed": "Échec de l'activation de l'abonnement",
        "upload.success": "Image téléchargée avec succès",
        "upload.failed": "Échec du téléchargement de l'image",
        "error.server": "Erreur interne du serveur",
    },
}


def is_supported_language(code: Optional[str]) -> bool:
    return code in SUPPORTED_LANGUAGES


def translate(key: str, language: Optional[str] = None) -> str:
    """
    Look up a message in the given language.

    Unknown languages fall back to English; unknown keys come back unchanged.
    """
    table = TRANSLATIONS.get(language or DEFAULT_LANGUAGE) or TRANSLATIONS[DEFAULT_LANGUAGE]
    return table.get(key, key)


def language_from_header(accept_language: Optional[str]) -> str:
    """
    Pick a supported language from an Accept-Language header.

    Only the first entry's primary subtag is considered, e.g.
    "de-CH,de;q=0.9" -> "de", "zh-CN" -> "cn".
    """
    if not accept_language:
        return DEFAULT_LANGUAGE

    primary = accept_language.split(",")[0].split(";")[0].strip()
    subtag = primary.split("-")[0].lower()
    subtag = _LOCALE_ALIASES.get(subtag, subtag)
    return subtag if subtag in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def resolve_language(requested: Optional[str], accept_language: Optional[str] = None) -> str:
    """Prefer an explicit language code, then the Accept-Language header."""
    if requested and requested in SUPPORTED_LANGUAGES:
        return requested
    return language_from_header(accept_language)
