"""
Caller-facing messages, localized.

French is the historical language of the service; English is available
through ``Config.LOCALE``.
"""

from __future__ import annotations

from datetime import date

MESSAGES: dict[str, dict[str, str]] = {
    "fr": {
        "activation_fields_required": "Clé de licence et identifiant machine requis",
        "invalid_key": "Clé de licence invalide",
        "license_deactivated": "Cette licence a été désactivée",
        "license_expired": "Cette licence a expiré le {date}",
        "other_machine": (
            "Cette licence est déjà activée sur un autre ordinateur. "
            "Contactez le support pour la transférer."
        ),
        "activation_success": "Licence activée avec succès",
        "activation_server_error": "Erreur serveur lors de l'activation",
        "verify_not_found": "Licence non trouvée ou machine non autorisée",
        "unauthorized": "Accès non autorisé",
        "create_fields_required": "Nom du client et date d'expiration requis",
        "invalid_expiry_date": "Date d'expiration invalide (format attendu AAAA-MM-JJ)",
        "create_success": "Licence créée avec succès",
        "create_server_error": "Erreur lors de la création de la licence",
        "license_key_required": "Clé de licence requise",
        "license_not_found": "Licence non trouvée",
        "reset_success": (
            "Machine réinitialisée. La licence peut être activée sur un nouveau PC."
        ),
        "invalid_request": "Requête invalide",
        "server_error": "Erreur serveur",
        # Audit log entries
        "log_invalid_key": "Clé invalide",
        "log_deactivated": "Licence désactivée",
        "log_expired": "Licence expirée",
        "log_other_machine": "Déjà activée sur autre machine",
        "log_activated": "Activation réussie",
        "log_verified": "Vérification réussie",
        "log_verify_invalid": "Licence invalide ou expirée",
        "log_verify_not_found": "Licence non trouvée ou machine non autorisée",
        "log_reset": "Machine réinitialisée",
    },
    "en": {
        "activation_fields_required": "License key and machine identifier required",
        "invalid_key": "Invalid license key",
        "license_deactivated": "This license has been deactivated",
        "license_expired": "This license expired on {date}",
        "other_machine": (
            "This license is already activated on another computer. "
            "Contact support to transfer it."
        ),
        "activation_success": "License activated successfully",
        "activation_server_error": "Server error during activation",
        "verify_not_found": "License not found or machine not authorized",
        "unauthorized": "Unauthorized",
        "create_fields_required": "Client name and expiry date required",
        "invalid_expiry_date": "Invalid expiry date (expected YYYY-MM-DD)",
        "create_success": "License created successfully",
        "create_server_error": "Error while creating the license",
        "license_key_required": "License key required",
        "license_not_found": "License not found",
        "reset_success": "Machine reset. The license can be activated on a new PC.",
        "invalid_request": "Invalid request",
        "server_error": "Server error",
        "log_invalid_key": "Invalid key",
        "log_deactivated": "License deactivated",
        "log_expired": "License expired",
        "log_other_machine": "Already activated on another machine",
        "log_activated": "Activation succeeded",
        "log_verified": "Verification succeeded",
        "log_verify_invalid": "License invalid or expired",
        "log_verify_not_found": "License not found or machine not authorized",
        "log_reset": "Machine reset",
    },
}

DATE_FORMATS = {"fr": "%d/%m/%Y", "en": "%Y-%m-%d"}


class Messages:
    """Message catalog bound to one locale."""

    def __init__(self, locale: str = "fr") -> None:
        if locale not in MESSAGES:
            msg = f"Unsupported locale: {locale}"
            raise ValueError(msg)
        self.locale = locale
        self._catalog = MESSAGES[locale]

    def get(self, name: str, **params: str) -> str:
        return self._catalog[name].format(**params)

    def format_date(self, value: date) -> str:
        return value.strftime(DATE_FORMATS[self.locale])
