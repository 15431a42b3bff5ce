from dataclasses import dataclass
from typing import List, Optional
from fastapi import HTTPException
import logging

from ..catalog import Role, Specialization, WEEKDAYS, parse_specialization
from ..ports.doctors_repo import DirectoryFilters, DoctorDirectory, DoctorDto, DoctorProfileData
from ..ports.profile_repo import ProfileRepository

logger = logging.getLogger(__name__)

DEFAULT_RATING = 5.0


@dataclass
class DoctorsService:
    directory: DoctorDirectory
    profiles: ProfileRepository

    def search(self, specialization: Optional[str], max_fee: Optional[float], min_rating: Optional[float], min_experience: Optional[int]) -> List[DoctorDto]:
        try:
            spec = parse_specialization(specialization)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown specialization: {specialization}")
        return self.directory.search(DirectoryFilters(spec, max_fee, min_rating, min_experience))

    def browse(self, query: Optional[str] = None, specialization: Optional[str] = None) -> List[DoctorDto]:
        """Doctors page listing: featured first, narrowed by free text and specialization."""
        try:
            spec = parse_specialization(specialization)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown specialization: {specialization}")
        needle = (query or "").strip().lower()
        return [
            d for d in self.directory.list_all()
            if (needle in d.name.lower() or needle in d.specialization.lower())
            and (spec is None or d.specialization == spec.value)
        ]

    def featured(self, limit: int = 4) -> List[DoctorDto]:
        return self.directory.featured(limit)

    def get(self, doctor_id: int) -> DoctorDto:
        doctor = self.directory.get(doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        return doctor

    def _role(self, user_id: str) -> Optional[str]:
        profile = self.profiles.get_by_user(user_id)
        return profile.role if profile else None

    def _validate(self, data: DoctorProfileData) -> DoctorProfileData:
        data.name = (data.name or "").strip()
        if not data.name or not data.specialization:
            raise HTTPException(status_code=400, detail="Missing Information: name and specialization are required")
        try:
            Specialization(data.specialization)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown specialization: {data.specialization}")
        unknown_days = [day for day in data.availability if day not in WEEKDAYS]
        if unknown_days:
            raise HTTPException(status_code=400, detail=f"Unknown availability days: {', '.join(unknown_days)}")
        return data

    def own_profile(self, user_id: str) -> Optional[DoctorDto]:
        return self.directory.get_for_user(user_id)

    def draft_for(self, user_id: str) -> DoctorProfileData:
        """Blank profile form, pre-filled with the identity's display name."""
        profile = self.profiles.get_by_user(user_id)
        return DoctorProfileData(name=(profile.full_name or "") if profile else "", specialization="")

    def save_own_profile(self, user_id: str, data: DoctorProfileData) -> DoctorDto:
        if self._role(user_id) != Role.DOCTOR.value:
            raise HTTPException(status_code=403, detail="Only doctors can manage a doctor profile")
        data = self._validate(data)
        existing = self.directory.get_for_user(user_id)
        if existing:
            if data.rating is None:
                data.rating = existing.rating
            doctor = self.directory.update(existing.id, data)
            logger.info(f"Doctor profile {doctor.id} updated by {user_id}")
            return doctor
        if data.rating is None:
            data.rating = DEFAULT_RATING
        doctor = self.directory.create(user_id, data)
        logger.info(f"Doctor profile {doctor.id} created by {user_id}")
        return doctor

    def add_doctor(self, user_id: str, data: DoctorProfileData) -> DoctorDto:
        if self._role(user_id) not in (Role.DOCTOR.value, Role.ADMIN.value):
            raise HTTPException(status_code=403, detail="Only doctors and admins can add doctors")
        data = self._validate(data)
        data.rating = DEFAULT_RATING
        # Clinic-managed entry, not linked to any identity
        doctor = self.directory.create(None, data)
        logger.info(f"Doctor {doctor.id} added by {user_id}")
        return doctor
