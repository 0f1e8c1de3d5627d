"""Terminal front end for the conversation controller."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from chat_widget.application.errors import ValidationError
from chat_widget.application.use_cases.conversation_controller import ConversationController
from chat_widget.application.use_cases.user_messages_de import UserMessagesDE
from chat_widget.domain.entities.conversation_state import ContactForm, ConversationMode

HELP_TEXT = """Befehle:
  <Text>              Nachricht senden
  /ja, /nein          Kontaktangebot annehmen oder ablehnen
  /lead               Kontaktformular (erneut) ausfüllen
  /support            Support-Ticket erstellen
  /vote <Nr> up|down  Antwort bewerten
  /retry              Fehlgeschlagene Nachricht erneut senden
  /reset              Neuen Chat starten
  /quit               Beenden"""

ALIASES = {
    "ja": "confirm",
    "yes": "confirm",
    "nein": "decline",
    "no": "decline",
    "neu": "reset",
    "new": "reset",
    "exit": "quit",
    "hilfe": "help",
}


@dataclass(frozen=True)
class Command:
    """A parsed line of terminal input."""

    name: str
    args: tuple[str, ...] = ()


def parse_command(line: str) -> Command:
    """
    Parse terminal input.

    Lines starting with "/" are commands; anything else is a chat message.

    Args:
        line: Raw input line

    Returns:
        Parsed command ("say" for chat messages)
    """
    line = line.strip()
    parts = line[1:].split() if line.startswith("/") else []
    if not parts:
        return Command("say", (line,))
    name = parts[0].lower()
    return Command(ALIASES.get(name, name), tuple(parts[1:]))


async def _read_stdin(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


class TerminalChat:
    """Interactive chat loop on stdin/stdout."""

    def __init__(
        self,
        controller: ConversationController,
        read_line: Callable[[str], Awaitable[str]] = _read_stdin,
        write: Callable[[str], None] = print,
    ) -> None:
        self._controller = controller
        self._read_line = read_line
        self._write = write
        self._printed = 0

    async def run(self) -> None:
        """Mount the session and process input until /quit or EOF."""
        await self._controller.mount()
        if self._controller.is_ephemeral:
            self._write("(Speicher nicht verfügbar, Sitzung gilt nur bis zum Beenden)")
        if not self._controller.state.messages:
            self._write(UserMessagesDE.EMPTY_TRANSCRIPT_HINT)
        self._print_new_messages()

        while True:
            try:
                line = await self._read_line("> ")
            except EOFError:
                break
            command = parse_command(line)
            if command.name == "quit":
                break
            await self.handle(command)

    async def handle(self, command: Command) -> None:
        """Execute one parsed command."""
        controller = self._controller
        mode_before = controller.mode
        if command.name == "say":
            if command.args and command.args[0]:
                await controller.send_message(command.args[0])
                if controller.state.failed_message:
                    self._write("(Nachricht nicht zugestellt, /retry zum erneuten Senden)")
        elif command.name == "retry":
            await controller.retry_failed_message()
        elif command.name == "confirm":
            controller.confirm_lead()
        elif command.name == "decline":
            controller.decline_lead()
        elif command.name == "support":
            controller.open_support()
        elif command.name == "reset":
            self._printed = 0
            await controller.reset()
            self._write(UserMessagesDE.EMPTY_TRANSCRIPT_HINT)
        elif command.name == "vote":
            await self._vote(command.args)
        elif command.name == "lead":
            pass
        else:
            self._write(HELP_TEXT)
            return

        self._print_new_messages()
        if controller.mode != mode_before or command.name in ("lead", "support"):
            await self._follow_mode()

    async def _follow_mode(self) -> None:
        mode = self._controller.mode
        if mode == ConversationMode.AWAITING_LEAD_CONFIRMATION:
            self._write(UserMessagesDE.LEAD_CONFIRM_PROMPT)
        elif mode == ConversationMode.LEAD_FORM_OPEN:
            await self._fill_form(self._controller.state.lead_form, lead=True)
        elif mode == ConversationMode.SUPPORT_FORM_OPEN:
            await self._fill_form(self._controller.state.support_form, lead=False)

    async def _fill_form(self, form: ContactForm, lead: bool) -> None:
        name = await self._read_line(f"Name [{form.name}]: ")
        email = await self._read_line(f"E-Mail [{form.email}]: ")
        phone = await self._read_line(f"Telefon (optional) [{form.phone}]: ")
        consent = await self._read_line("Einwilligung zur Datenverarbeitung (j/n): ")
        fields = {
            "name": name.strip() or form.name,
            "email": email.strip() or form.email,
            "phone": phone.strip() or form.phone,
            "consent": consent.strip().lower() in ("j", "ja", "y", "yes"),
        }
        if lead:
            self._controller.update_lead_form(**fields)
            submitted = await self._controller.submit_lead()
        else:
            self._controller.update_support_form(**fields)
            submitted = await self._controller.submit_support()

        if not submitted and form.error:
            again = "/lead" if lead else "/support"
            self._write(f"{form.error} ({again} zum erneuten Versuch)")
        self._print_new_messages()

    async def _vote(self, args: tuple[str, ...]) -> None:
        if len(args) != 2 or not args[0].isdigit():
            self._write("Verwendung: /vote <Nr> up|down")
            return
        try:
            sent = await self._controller.vote(int(args[0]) - 1, args[1].lower())
        except ValidationError as e:
            self._write(str(e))
            return
        self._write("Danke für Ihr Feedback!" if sent else "(Bewertung nicht gesendet)")

    def _print_new_messages(self) -> None:
        messages = self._controller.state.messages
        for number, message in enumerate(messages[self._printed :], start=self._printed + 1):
            speaker = "Sie" if message.role == "user" else "Assistent"
            self._write(f"[{number}] {speaker}: {message.content}")
        self._printed = len(messages)
