from sqlalchemy import Column, Integer, String, Text, Float, Boolean, Date, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime


class Profile(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(120), nullable=False, unique=True, index=True)
    password = Column(String(100), nullable=False)
    full_name = Column(String(120))
    role = Column(String(20), nullable=False, default="technician")
    department = Column(String(120))
    avatar_url = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    technician = relationship("Technician", back_populates="profile", uselist=False)

    def __repr__(self):
        return f"<Profile(email='{self.email}')>"

    def __str__(self):
        return self.full_name or self.email


class Team(Base):
    __tablename__ = "teams"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    color = Column(String(20), nullable=False, default="#6366f1")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    technicians = relationship("Technician", back_populates="team")


class EquipmentCategory(Base):
    __tablename__ = "equipment_categories"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)


class Equipment(Base):
    __tablename__ = "equipment"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    serial_number = Column(String(120), nullable=False)
    category_id = Column(Integer, ForeignKey("equipment_categories.id"), nullable=True)
    status = Column(String(30), nullable=False, default="Active")
    location = Column(String(120))
    department = Column(String(120))
    assigned_to = Column(String(120))
    maintenance_team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    default_technician_id = Column(Integer, ForeignKey("technicians.id"), nullable=True)
    purchase_date = Column(Date)
    warranty_expiry_date = Column(Date)
    warranty_provider = Column(String(120))
    last_maintenance_date = Column(Date)
    next_maintenance_date = Column(Date)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("EquipmentCategory")
    team = relationship("Team")
    requests = relationship("MaintenanceRequest", back_populates="equipment")


class WorkCenter(Base):
    __tablename__ = "work_centers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    code = Column(String(30))
    location = Column(String(120))
    description = Column(Text)
    capacity = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="Active")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Technician(Base):
    __tablename__ = "technicians"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, unique=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    specialization = Column(String(120))
    status = Column(String(20), nullable=False, default="Available")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    profile = relationship("Profile", back_populates="technician")
    team = relationship("Team", back_populates="technicians")


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"
    id = Column(Integer, primary_key=True, index=True)
    request_number = Column(String(40), nullable=False, unique=True)
    subject = Column(String(200), nullable=False)
    description = Column(Text)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    assigned_technician_id = Column(Integer, ForeignKey("technicians.id"), nullable=True)
    work_center_id = Column(Integer, ForeignKey("work_centers.id"), nullable=True)
    type = Column(String(20), nullable=False, default="Corrective")
    status = Column(String(20), nullable=False, default="New", index=True)
    priority = Column(String(20), nullable=False, default="Medium")
    scheduled_date = Column(DateTime)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    estimated_hours = Column(Float)
    actual_hours = Column(Float)
    cost = Column(Float)
    created_by = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    equipment = relationship("Equipment", back_populates="requests")
    team = relationship("Team")
    technician = relationship("Technician")
    work_center = relationship("WorkCenter")


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="info")
    read = Column(Boolean, nullable=False, default=False)
    link = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)


class ActivityLog(Base):
    __tablename__ = "activity_logs"
    id = Column(Integer, primary_key=True, index=True)
    user = Column(String(120))
    action = Column(String(255))
    ip = Column(String(50))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
