"""Localized user-facing strings."""

from typing import Dict, Union

from .domain.models import Language

TRANSLATIONS: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "websiteReady": "Your website is ready! Check the preview.",
        "projectSaved": "Project saved successfully!",
        "untitledProject": "Untitled Project",
        "invalidFileFormat": "Invalid file format",
        "auth_invalid_credential": "Invalid credentials.",
        "auth_email_in_use": "Email already in use.",
        "auth_weak_password": "Password too weak.",
        "auth_cancelled": "Sign in cancelled.",
        "auth_unauthorized_domain": "Unauthorized Domain Error",
    },
    Language.HE: {
        "websiteReady": "האתר שלך מוכן! בדוק את התצוגה המקדימה.",
        "projectSaved": "הפרויקט נשמר בהצלחה!",
        "untitledProject": "פרויקט ללא שם",
        "invalidFileFormat": "פורמט קובץ לא תקין",
        "auth_invalid_credential": "פרטי ההתחברות שגויים.",
        "auth_email_in_use": "המייל כבר רשום במערכת.",
        "auth_weak_password": "הסיסמה חלשה מדי.",
        "auth_cancelled": "ההתחברות בוטלה.",
        "auth_unauthorized_domain": "שגיאת הרשאה: הדומיין הנוכחי אינו מאושר.",
    },
    Language.FR: {
        "websiteReady": "Votre site est prêt ! Consultez l'aperçu.",
        "projectSaved": "Projet enregistré !",
        "untitledProject": "Projet sans titre",
    },
    Language.IT: {
        "websiteReady": "Il tuo sito è pronto! Controlla l'anteprima.",
        "projectSaved": "Progetto salvato!",
        "untitledProject": "Progetto senza titolo",
    },
    Language.DE: {
        "websiteReady": "Deine Website ist fertig! Sieh dir die Vorschau an.",
        "projectSaved": "Projekt gespeichert!",
        "untitledProject": "Unbenanntes Projekt",
    },
    Language.PL: {
        "websiteReady": "Twoja strona jest gotowa! Sprawdź podgląd.",
        "projectSaved": "Projekt zapisany!",
        "untitledProject": "Projekt bez nazwy",
    },
    Language.DA: {
        "websiteReady": "Din hjemmeside er klar! Se forhåndsvisningen.",
        "projectSaved": "Projekt gemt!",
        "untitledProject": "Unavngivet projekt",
    },
    Language.NL: {
        "websiteReady": "Je website is klaar! Bekijk de preview.",
        "projectSaved": "Project opgeslagen!",
        "untitledProject": "Naamloos project",
    },
    Language.ES: {
        "websiteReady": "¡Tu sitio web está listo! Revisa la vista previa.",
        "projectSaved": "¡Proyecto guardado!",
        "untitledProject": "Proyecto sin título",
    },
}


def translate(language: Union[Language, str], key: str) -> str:
    """Look up a string, falling back to English and then to the key."""
    table = TRANSLATIONS.get(Language.parse(language), {})
    return table.get(key) or TRANSLATIONS[Language.EN].get(key, key)
