"""
Input contracts for the Gmail tools.

Each tool validates its call arguments against one of these pydantic models
before the Gmail operation runs. The same models produce the JSON Schema that
MCP clients see as the tool's inputSchema.

Field names are snake_case in Python and camelCase on the wire (messageId,
addLabelIds, ...), which is what Gmail API users expect. Unknown keys in the
arguments are ignored.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MessageListVisibility = Literal["show", "hide"]
LabelListVisibility = Literal["labelShow", "labelShowIfUnread", "labelHide"]


class ToolInput(BaseModel):
    """Base for every tool input: camelCase aliases, extra keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class SendEmailInput(ToolInput):
    to: list[str] = Field(description="List of recipient email addresses")
    subject: str = Field(description="Email subject")
    body: str = Field(
        description="Email body content (used for text/plain or when htmlBody not provided)"
    )
    html_body: str | None = Field(None, description="HTML version of the email body")
    mime_type: Literal["text/plain", "text/html", "multipart/alternative"] = Field(
        "text/plain", description="Email content type"
    )
    cc: list[str] | None = Field(None, description="List of CC recipients")
    bcc: list[str] | None = Field(None, description="List of BCC recipients")
    thread_id: str | None = Field(None, description="Thread ID to reply to")
    in_reply_to: str | None = Field(None, description="Message ID being replied to")
    attachments: list[str] | None = Field(
        None, description="List of file paths to attach to the email"
    )


class ReadEmailInput(ToolInput):
    message_id: str = Field(description="ID of the email message to retrieve")


class SearchEmailsInput(ToolInput):
    query: str = Field(description="Gmail search query (e.g., 'from:example@gmail.com')")
    max_results: int | None = Field(None, description="Maximum number of results to return")


class ModifyEmailInput(ToolInput):
    message_id: str = Field(description="ID of the email message to modify")
    label_ids: list[str] | None = Field(None, description="List of label IDs to apply")
    add_label_ids: list[str] | None = Field(
        None, description="List of label IDs to add to the message"
    )
    remove_label_ids: list[str] | None = Field(
        None, description="List of label IDs to remove from the message"
    )


class DeleteEmailInput(ToolInput):
    message_id: str = Field(description="ID of the email message to delete")


class BatchModifyEmailsInput(ToolInput):
    message_ids: list[str] = Field(description="List of message IDs to modify")
    add_label_ids: list[str] | None = Field(
        None, description="List of label IDs to add to all messages"
    )
    remove_label_ids: list[str] | None = Field(
        None, description="List of label IDs to remove from all messages"
    )
    batch_size: int = Field(
        50, description="Number of messages to process in each batch (default: 50)"
    )


class BatchDeleteEmailsInput(ToolInput):
    message_ids: list[str] = Field(description="List of message IDs to delete")
    batch_size: int = Field(
        50, description="Number of messages to process in each batch (default: 50)"
    )


class DownloadAttachmentInput(ToolInput):
    message_id: str = Field(description="ID of the email message containing the attachment")
    attachment_id: str = Field(description="ID of the attachment to download")
    filename: str | None = Field(
        None,
        description="Filename to save the attachment as (if not provided, uses original filename)",
    )
    save_path: str | None = Field(
        None, description="Directory path to save the attachment (defaults to current directory)"
    )


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


class ListEmailLabelsInput(ToolInput):
    """Retrieves all available Gmail labels"""


class CreateLabelInput(ToolInput):
    """Creates a new Gmail label"""

    name: str = Field(description="Name for the new label")
    message_list_visibility: MessageListVisibility | None = Field(
        None, description="Whether to show or hide the label in the message list"
    )
    label_list_visibility: LabelListVisibility | None = Field(
        None, description="Visibility of the label in the label list"
    )


class UpdateLabelInput(ToolInput):
    """Updates an existing Gmail label"""

    id: str = Field(description="ID of the label to update")
    name: str | None = Field(None, description="New name for the label")
    message_list_visibility: MessageListVisibility | None = Field(
        None, description="Whether to show or hide the label in the message list"
    )
    label_list_visibility: LabelListVisibility | None = Field(
        None, description="Visibility of the label in the label list"
    )


class DeleteLabelInput(ToolInput):
    """Deletes a Gmail label"""

    id: str = Field(description="ID of the label to delete")


class GetOrCreateLabelInput(ToolInput):
    """Gets an existing label by name or creates it if it doesn't exist"""

    name: str = Field(description="Name of the label to get or create")
    message_list_visibility: MessageListVisibility | None = Field(
        None, description="Whether to show or hide the label in the message list"
    )
    label_list_visibility: LabelListVisibility | None = Field(
        None, description="Visibility of the label in the label list"
    )


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


class FilterCriteria(ToolInput):
    """Criteria for matching emails"""

    # "from" is a Python keyword, so this one field needs an explicit alias.
    from_: str | None = Field(None, alias="from", description="Sender email address to match")
    to: str | None = Field(None, description="Recipient email address to match")
    subject: str | None = Field(None, description="Subject text to match")
    query: str | None = Field(None, description="Gmail search query (e.g., 'has:attachment')")
    negated_query: str | None = Field(None, description="Text that must NOT be present")
    has_attachment: bool | None = Field(
        None, description="Whether to match emails with attachments"
    )
    exclude_chats: bool | None = Field(None, description="Whether to exclude chat messages")
    size: int | None = Field(None, description="Email size in bytes")
    size_comparison: Literal["unspecified", "smaller", "larger"] | None = Field(
        None, description="Size comparison operator"
    )


class FilterAction(ToolInput):
    """Actions to perform on matching emails"""

    add_label_ids: list[str] | None = Field(
        None, description="Label IDs to add to matching emails"
    )
    remove_label_ids: list[str] | None = Field(
        None, description="Label IDs to remove from matching emails"
    )
    forward: str | None = Field(None, description="Email address to forward matching emails to")


class CreateFilterInput(ToolInput):
    """Creates a new Gmail filter"""

    criteria: FilterCriteria
    action: FilterAction


class ListFiltersInput(ToolInput):
    """Retrieves all Gmail filters"""


class GetFilterInput(ToolInput):
    """Gets details of a specific Gmail filter"""

    filter_id: str = Field(description="ID of the filter to retrieve")


class DeleteFilterInput(ToolInput):
    """Deletes a Gmail filter"""

    filter_id: str = Field(description="ID of the filter to delete")


class FilterTemplateParameters(ToolInput):
    """Template-specific parameters"""

    sender_email: str | None = Field(None, description="Sender email (for fromSender template)")
    subject_text: str | None = Field(None, description="Subject text (for withSubject template)")
    search_text: str | None = Field(
        None, description="Text to search for (for containingText template)"
    )
    list_identifier: str | None = Field(
        None, description="Mailing list identifier (for mailingList template)"
    )
    size_in_bytes: int | None = Field(
        None, description="Size threshold in bytes (for largeEmails template)"
    )
    label_ids: list[str] | None = Field(None, description="Label IDs to apply")
    archive: bool | None = Field(None, description="Whether to archive (skip inbox)")
    mark_as_read: bool | None = Field(None, description="Whether to mark as read")
    mark_important: bool | None = Field(None, description="Whether to mark as important")


class CreateFilterFromTemplateInput(ToolInput):
    """Creates a filter using a pre-defined template"""

    template: Literal[
        "fromSender",
        "withSubject",
        "withAttachments",
        "largeEmails",
        "containingText",
        "mailingList",
    ] = Field(description="Pre-defined filter template to use")
    parameters: FilterTemplateParameters
