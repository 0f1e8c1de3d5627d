"""German user-facing messages for the chat widget."""

from typing import Optional


class UserMessagesDE:
    """Centralized German user-facing messages."""

    EMPTY_TRANSCRIPT_HINT = "Schreib eine erste Nachricht, um zu beginnen."

    # Lead confirmation step
    LEAD_CONFIRM_PROMPT = (
        "Möchten Sie, dass sich unser Team persönlich bei Ihnen meldet? "
        "Antworten Sie mit Ja oder Nein."
    )
    LEAD_CONFIRMED_ACK = (
        "Sehr gerne! Bitte hinterlassen Sie uns kurz Ihren Namen und Ihre E-Mail-Adresse."
    )
    LEAD_DECLINED_ACK = "Alles klar! Fragen Sie mich gerne jederzeit weiter."

    # Submission confirmations
    LEAD_THANK_YOU = "Vielen Dank! Unser Team meldet sich schnellstmöglich bei Ihnen."
    SUPPORT_TICKET_CREATED = "Support-Ticket wurde erstellt. Unser Team meldet sich."

    # Inline form errors
    LEAD_MISSING_FIELDS = "Bitte Name und E-Mail eingeben."
    SUPPORT_MISSING_FIELDS = "Bitte Name und E-Mail oder Telefonnummer eingeben."
    CONSENT_REQUIRED = "Bitte stimmen Sie der Verarbeitung Ihrer Daten zu."
    SUBMISSION_FAILED = "Senden fehlgeschlagen. Bitte versuchen Sie es erneut."

    # Ticket titles
    LEAD_TITLE_PREFIX = "Lead: "
    LEAD_TITLE_FALLBACK = "Lead: Website-Chat"
    SUPPORT_TITLE_FALLBACK = "Support-Anfrage aus dem Website-Chat"

    @staticmethod
    def lead_ticket_title(last_user_message: Optional[str], max_chars: int = 80) -> str:
        """Derive the lead ticket title from the last user message."""
        text = (last_user_message or "").strip()
        if not text:
            return UserMessagesDE.LEAD_TITLE_FALLBACK
        return UserMessagesDE.LEAD_TITLE_PREFIX + text[:max_chars]

    @staticmethod
    def support_title_prompt(context_lines: list[str]) -> str:
        """Build the instruction sent to the chat collaborator for a ticket title."""
        conversation = "\n".join(context_lines)
        return (
            "Formuliere einen kurzen, sachlichen Titel (maximal 8 Wörter) für ein "
            "Support-Ticket zu folgendem Gesprächsverlauf. Antworte nur mit dem Titel.\n\n"
            f"{conversation}"
        )
