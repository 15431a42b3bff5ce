from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import Doctor
from .....application.ports.doctors_repo import (
    DoctorDirectory,
    DoctorDto,
    DirectoryFilters,
    DoctorProfileData,
)


def doctor_to_dto(d: Doctor) -> DoctorDto:
    return DoctorDto(
        id=d.id,
        user_id=d.user_id,
        name=d.name,
        specialization=d.specialization,
        experience_years=d.experience_years,
        bio=d.bio,
        avatar_url=d.avatar_url,
        consultation_fee=d.consultation_fee,
        rating=d.rating,
        availability=dict(d.availability or {}),
        is_featured=d.is_featured,
        created_at=d.created_at,
    )


class SqlDoctorDirectory(DoctorDirectory):
    def __init__(self, session: Session):
        self.session = session

    def search(self, filters: DirectoryFilters) -> List[DoctorDto]:
        query = select(Doctor)
        if filters.specialization is not None:
            query = query.where(Doctor.specialization == filters.specialization.value)
        if filters.max_fee is not None:
            query = query.where(Doctor.consultation_fee <= filters.max_fee)
        if filters.min_rating is not None:
            query = query.where(Doctor.rating >= filters.min_rating)
        if filters.min_experience is not None:
            query = query.where(Doctor.experience_years >= filters.min_experience)
        rows = self.session.exec(query.order_by(Doctor.rating.desc(), Doctor.id)).all()
        return [doctor_to_dto(d) for d in rows]

    def list_all(self) -> List[DoctorDto]:
        rows = self.session.exec(select(Doctor).order_by(Doctor.is_featured.desc(), Doctor.id)).all()
        return [doctor_to_dto(d) for d in rows]

    def featured(self, limit: int) -> List[DoctorDto]:
        rows = self.session.exec(
            select(Doctor).where(Doctor.is_featured == True).order_by(Doctor.id).limit(limit)  # noqa: E712
        ).all()
        return [doctor_to_dto(d) for d in rows]

    def get(self, doctor_id: int) -> Optional[DoctorDto]:
        d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        return doctor_to_dto(d) if d else None

    def get_for_user(self, user_id: str) -> Optional[DoctorDto]:
        d = self.session.exec(select(Doctor).where(Doctor.user_id == user_id)).first()
        return doctor_to_dto(d) if d else None

    def _apply(self, d: Doctor, data: DoctorProfileData) -> None:
        d.name = data.name
        d.specialization = data.specialization
        d.experience_years = data.experience_years or 0
        d.bio = data.bio or ""
        d.consultation_fee = data.consultation_fee or 0
        d.availability = dict(data.availability or {})
        d.is_featured = bool(data.is_featured)
        if data.rating is not None:
            d.rating = data.rating
        if data.avatar_url is not None:
            d.avatar_url = data.avatar_url

    def create(self, user_id: Optional[str], data: DoctorProfileData) -> DoctorDto:
        d = Doctor(user_id=user_id, name=data.name, specialization=data.specialization)
        self._apply(d, data)
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return doctor_to_dto(d)

    def update(self, doctor_id: int, data: DoctorProfileData) -> DoctorDto:
        d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).one()
        self._apply(d, data)
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return doctor_to_dto(d)
