"""Interactive vault session driving the client state machine."""
import asyncio
import logging
from typing import Callable, Optional

from simple_vault.secrets.domains.models import ModalState
from simple_vault.secrets.workflows.session import VaultSession

from .render import format_draft, format_secret_summary

logger = logging.getLogger(__name__)

HELP_TEXT = """
Commands:
  list                 Show the cached secrets
  refresh              Reload secrets from the vault
  new                  Open the create dialog
  edit <id>            Open the edit dialog for a secret
  name <text>          Set the draft name
  desc <text>          Set the draft description
  key <key>            Stage the pending key
  value <value>        Stage the pending value
  add [<key> <value>]  Add a pair to the draft (staged pair if no arguments)
  rm <key>             Remove a pair from the draft
  draft                Show the open dialog
  submit               Create or update from the open dialog
  cancel               Close the dialog and discard the draft
  delete <id>          Delete a secret (asks for confirmation)
  dismiss              Clear the error message
  help                 Show this help
  quit                 Leave the shell
""".strip()


class VaultShell:
    """
    Line-oriented front-end over a VaultSession.

    Args:
        session: Session to drive (a new one is built if not provided)
        input_func: Source of user input, replaceable for scripted use
    """

    prompt = "vault> "

    def __init__(self, session: Optional[VaultSession] = None, input_func: Callable[[str], str] = input):
        self._input = input_func
        self.session = session or VaultSession(confirm=self._confirm)
        self._commands = {
            "list": self.do_list,
            "refresh": self.do_refresh,
            "new": self.do_new,
            "edit": self.do_edit,
            "name": self.do_name,
            "desc": self.do_desc,
            "key": self.do_key,
            "value": self.do_value,
            "add": self.do_add,
            "rm": self.do_rm,
            "draft": self.do_draft,
            "submit": self.do_submit,
            "cancel": self.do_cancel,
            "delete": self.do_delete,
            "dismiss": self.do_dismiss,
            "help": self.do_help,
        }

    def _confirm(self, secret_id: str) -> bool:
        secret = self.session.store.get(secret_id)
        label = f"'{secret.name}'" if secret else secret_id
        try:
            answer = self._input(f"Are you sure you want to delete secret {label}? (y/N): ")
        except EOFError:
            return False
        return answer.strip().lower() == "y"

    def run(self) -> None:
        print("Simple Vault - type 'help' for commands")
        self.do_refresh("")
        self.do_list("")
        while True:
            try:
                line = self._input(self.prompt)
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not self.handle(line):
                break

    def handle(self, line: str) -> bool:
        """
        Execute one command line.

        Returns:
            False when the shell should exit
        """
        command, _, rest = line.strip().partition(" ")
        if not command:
            return True
        if command in ("quit", "exit"):
            return False

        handler = self._commands.get(command)
        if handler is None:
            print(f"Unknown command '{command}'. Type 'help' for commands.")
            return True

        logger.debug(f"Shell command: {command}")
        handler(rest.strip())
        self._show_error()
        return True

    def _show_error(self) -> None:
        if self.session.error:
            print(f"! {self.session.error} (type 'dismiss' to clear)")

    def _require_dialog(self) -> bool:
        if not self.session.modal.is_open:
            print("No dialog open. Use 'new' or 'edit <id>' first.")
            return False
        return True

    def do_list(self, arg: str) -> None:
        state = self.session.state
        if state.loading:
            print("Loading secrets...")
            return
        secrets = self.session.store.secrets
        if not secrets:
            print("No secrets found. Create your first secret with 'new'.")
            return
        for secret in secrets:
            for line in format_secret_summary(secret):
                print(line)

    def do_refresh(self, arg: str) -> None:
        asyncio.run(self.session.store.load())

    def do_new(self, arg: str) -> None:
        if not self.session.modal.open_create():
            print("A dialog is already open. Submit or cancel it first.")
            return
        self.do_draft("")

    def do_edit(self, arg: str) -> None:
        if not arg:
            print("Usage: edit <id>")
            return
        secret = self.session.store.get(arg)
        if secret is None:
            print(f"No secret with id '{arg}'. Try 'refresh'.")
            return
        if not self.session.modal.open_edit(secret):
            print("A dialog is already open. Submit or cancel it first.")
            return
        self.do_draft("")

    def do_name(self, arg: str) -> None:
        if self._require_dialog():
            self.session.modal.set_name(arg)

    def do_desc(self, arg: str) -> None:
        if self._require_dialog():
            self.session.modal.set_description(arg)

    def do_key(self, arg: str) -> None:
        if self._require_dialog():
            self.session.editor.set_pending(key=arg)

    def do_value(self, arg: str) -> None:
        if self._require_dialog():
            self.session.editor.set_pending(value=arg)

    def do_add(self, arg: str) -> None:
        if not self._require_dialog():
            return
        if arg:
            key, _, value = arg.partition(" ")
            added = self.session.editor.add(key, value.strip())
        else:
            added = self.session.editor.add()
        if not added:
            print("Both a key and a value are required.")

    def do_rm(self, arg: str) -> None:
        if self._require_dialog() and not self.session.editor.remove(arg):
            print(f"Key '{arg}' is not in the draft.")

    def do_draft(self, arg: str) -> None:
        if not self._require_dialog():
            return
        modal = self.session.modal
        title = "Create Secret" if modal.state is ModalState.CREATE_OPEN else "Edit Secret"
        for line in format_draft(modal.form, title):
            print(line)
        pending = self.session.state.pending
        if pending.key or pending.value:
            print(f"Pending: {pending.key or '(no key)'} / {'set' if pending.value else '(no value)'}")

    def do_submit(self, arg: str) -> None:
        if not self._require_dialog():
            return
        if not self.session.modal.form.name.strip():
            print("Name is required.")
            return
        if asyncio.run(self.session.coordinator.submit()):
            print("Saved.")
            self.do_list("")

    def do_cancel(self, arg: str) -> None:
        self.session.modal.cancel()

    def do_delete(self, arg: str) -> None:
        if not arg:
            print("Usage: delete <id>")
            return
        if asyncio.run(self.session.coordinator.remove(arg)):
            print("Deleted.")
            self.do_list("")

    def do_dismiss(self, arg: str) -> None:
        self.session.coordinator.dismiss_error()

    def do_help(self, arg: str) -> None:
        print(HELP_TEXT)


def run_shell() -> None:
    VaultShell().run()
