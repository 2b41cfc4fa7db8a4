"""Subject model."""
from rollcall import db
from rollcall.models.base import BaseModel

class Subject(BaseModel):
    """A course that class sessions belong to."""
    
    __tablename__ = 'subjects'
    
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    
    # Relationships
    sessions = db.relationship('ClassSession', backref='subject', lazy='dynamic')
    
    def __repr__(self):
        return f'<Subject {self.name}>'
