import logging

from sqlalchemy.orm import Session

from momentum.models import Label
from momentum.schemas import LabelCreate, LabelUpdate

logger = logging.getLogger(__name__)


def list_labels(db: Session, workspace_id: int) -> list:
    return db.query(Label)\
        .filter(Label.workspace_id == workspace_id)\
        .order_by(Label.name, Label.id)\
        .all()


def create_label(db: Session, workspace_id: int, data: LabelCreate) -> Label:
    label = Label(workspace_id=workspace_id, name=data.name, color=data.color)
    db.add(label)
    db.commit()
    db.refresh(label)
    return label


def update_label(db: Session, label: Label, data: LabelUpdate) -> Label:
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(label, field, value)
    db.commit()
    db.refresh(label)
    return label


def delete_label(db: Session, label: Label):
    """
    Deletes a label. Issues that carried it keep existing; only their
    junction rows go away.
    """
    label_id = label.id
    db.delete(label)
    db.commit()
    logger.info(f"Label {label_id} deleted")
