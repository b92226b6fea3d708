"""Mailer schemas - Pydantic models for outbound email and template data"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Recipients = Union[str, list[str]]


class EmailRequest(BaseModel):
    """Provider-neutral email as sent by ``EmailService``"""

    to: Recipients
    subject: str
    from_address: Optional[str] = None
    text: Optional[str] = None
    html: Optional[str] = None
    cc: Optional[Recipients] = None
    bcc: Optional[Recipients] = None
    replyTo: Optional[str] = None


class EmailResult(BaseModel):
    success: bool
    message: str
    messageId: Optional[str] = None
    error: Optional[str] = None


class MailerRequest(BaseModel):
    """Body of a generic ``POST /mailer`` request"""

    model_config = ConfigDict(populate_by_name=True)

    to: Optional[Recipients] = None
    subject: Optional[str] = None
    from_address: Optional[str] = Field(default=None, alias="from")
    text: Optional[str] = None
    html: Optional[str] = None
    cc: Optional[Recipients] = None
    bcc: Optional[Recipients] = None
    replyTo: Optional[str] = None
    useTemplate: bool = False
    message: Optional[str] = None
    companyName: Optional[str] = None
    logoUrl: Optional[str] = None
    primaryColor: Optional[str] = None
    secondaryColor: Optional[str] = None
    taskTitle: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    assignedBy: Optional[str] = None
    taskId: Optional[str] = None
    projectName: Optional[str] = None
    jobDescription: Optional[str] = None
    taskDescription: Optional[str] = None
    body: Optional[str] = None
    contactAddress: Optional[str] = None
    contactTelephone: Optional[str] = None
    contactEmail: Optional[str] = None


class TemplateData(BaseModel):
    """Values rendered into the message and task assignment templates"""

    subject: Optional[str] = None
    message: Optional[str] = None
    companyName: str = "Dime.Scheduler"
    logoUrl: Optional[str] = None
    primaryColor: Optional[str] = None
    secondaryColor: Optional[str] = None
    taskTitle: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    assignedBy: Optional[str] = None
    taskId: Optional[str] = None
    projectName: Optional[str] = None
    jobDescription: Optional[str] = None
    taskDescription: Optional[str] = None
    body: Optional[str] = None
    contactAddress: Optional[str] = None
    contactTelephone: Optional[str] = None
    contactEmail: Optional[str] = None

    @property
    def is_task_assignment(self) -> bool:
        return bool(self.taskTitle or self.startDate or self.endDate)
