"""
User-facing strings in French and English.

Audit text (comments, activity descriptions) is written in the deciding
user's locale; error and success messages follow the caller's locale.
"""
from typing import Optional

from .config import get_settings

SUPPORTED_LOCALES = ("fr", "en")

MESSAGES = {
    "fr": {
        "unauthenticated": "Non authentifié",
        "invalid_request": "Requête invalide",
        "step_not_found": "Étape d'approbation introuvable",
        "workflow_not_found": "Workflow d'approbation introuvable",
        "organization_not_found": "Organisation introuvable",
        "not_approver_approve": "Vous n'êtes pas autorisé à approuver cette étape",
        "not_approver_reject": "Vous n'êtes pas autorisé à rejeter cette étape",
        "already_decided": "Cette étape a déjà été traitée",
        "reject_comment_required": "Un commentaire est requis pour rejeter une approbation",
        "approve_success": "Approbation enregistrée avec succès",
        "reject_success": "Rejet enregistré avec succès",
        "approve_failed": "Erreur lors de l'approbation",
        "reject_failed": "Erreur lors du rejet",
        "approve_marker": "✅ Approuvé: {comments}",
        "reject_marker": "❌ Rejeté: {comments}",
        "activity_approved": "Approbation accordée: {name}",
        "activity_rejected": "Approbation rejetée: {name}",
        "activity_workflow_created": "Workflow d'approbation créé: {name}",
        "workflow_missing_fields": "Paramètres manquants: resource_type, resource_id, approver_ids requis",
        "workflow_admin_only": "Seuls les admins peuvent créer des workflows d'approbation",
        "workflow_unknown_approvers": "Approbateurs inconnus dans cette organisation: {ids}",
        "workflow_bad_required": "Le nombre d'approbateurs requis doit être entre 1 et {count}",
        "workflow_default_name": "Approbation {resource_type}",
        "workflow_created": "Workflow d'approbation créé avec succès",
        "workflow_create_failed": "Erreur lors de la création du workflow",
    },
    "en": {
        "unauthenticated": "Not authenticated",
        "invalid_request": "Invalid request",
        "step_not_found": "Approval step not found",
        "workflow_not_found": "Approval workflow not found",
        "organization_not_found": "Organization not found",
        "not_approver_approve": "You are not allowed to approve this step",
        "not_approver_reject": "You are not allowed to reject this step",
        "already_decided": "This step has already been decided",
        "reject_comment_required": "A comment is required to reject an approval",
        "approve_success": "Approval recorded successfully",
        "reject_success": "Rejection recorded successfully",
        "approve_failed": "Error while approving",
        "reject_failed": "Error while rejecting",
        "approve_marker": "✅ Approved: {comments}",
        "reject_marker": "❌ Rejected: {comments}",
        "activity_approved": "Approval granted: {name}",
        "activity_rejected": "Approval rejected: {name}",
        "activity_workflow_created": "Approval workflow created: {name}",
        "workflow_missing_fields": "Missing parameters: resource_type, resource_id, approver_ids are required",
        "workflow_admin_only": "Only admins can create approval workflows",
        "workflow_unknown_approvers": "Unknown approvers in this organization: {ids}",
        "workflow_bad_required": "Required approvers must be between 1 and {count}",
        "workflow_default_name": "Approval {resource_type}",
        "workflow_created": "Approval workflow created successfully",
        "workflow_create_failed": "Error while creating the workflow",
    },
}


def resolve_locale(locale: Optional[str]) -> str:
    """Fall back to the configured default for unknown or missing locales."""
    if locale in SUPPORTED_LOCALES:
        return locale
    return get_settings().default_locale


def t(key: str, locale: Optional[str] = None, **params) -> str:
    text = MESSAGES[resolve_locale(locale)][key]
    return text.format(**params) if params else text
