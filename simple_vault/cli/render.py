"""Text rendering of secrets and drafts for the terminal."""
from typing import List

from simple_vault.secrets.domains.models import MASK, FormState, Secret, masked_items


def format_timestamp(secret: Secret) -> str:
    if secret.created_at is None:
        return "unknown"
    return secret.created_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_secret_summary(secret: Secret) -> List[str]:
    """Card view used in listings: name, description, key names, creation time."""
    lines = [f"{secret.name}  [{secret.id}]"]
    if secret.description:
        lines.append(f"  {secret.description}")
    keys = ", ".join(secret.data) if secret.data else "-"
    lines.append(f"  Keys ({len(secret.data)}): {keys}")
    lines.append(f"  Created: {format_timestamp(secret)}")
    return lines


def format_secret_detail(secret: Secret, reveal: bool = False) -> List[str]:
    lines = [
        f"ID:          {secret.id}",
        f"Name:        {secret.name}",
        f"Description: {secret.description or '-'}",
        f"Created:     {format_timestamp(secret)}",
    ]
    if secret.updated_at is not None:
        lines.append(f"Updated:     {secret.updated_at.astimezone().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("Data:")
    for key, value in secret.data.items():
        lines.append(f"  {key} = {value if reveal else MASK}")
    return lines


def format_draft(form: FormState, title: str) -> List[str]:
    lines = [
        f"== {title} ==",
        f"Name:        {form.name}",
        f"Description: {form.description}",
        "Key-Value Pairs:",
    ]
    rows = masked_items(form.data)
    if not rows:
        lines.append("  (none)")
    for key, mask in rows:
        lines.append(f"  {key}  {mask}")
    return lines
