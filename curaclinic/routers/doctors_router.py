from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from ..application.ports.doctors_repo import DoctorProfileData
from ..application.services.doctors_service import DoctorsService
from ..schemas.doctors.doctor import DoctorBase, DoctorCreate, DoctorResponse, OwnDoctorProfileResponse
from .deps import get_current_user, get_doctors_service

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def _profile_data(body: DoctorCreate) -> DoctorProfileData:
    return DoctorProfileData(
        name=body.name,
        specialization=body.specialization,
        experience_years=body.experience_years,
        bio=body.bio or "",
        consultation_fee=body.consultation_fee,
        availability=dict(body.availability),
        is_featured=body.is_featured,
        avatar_url=body.avatar_url,
    )


@router.get("/", response_model=List[DoctorResponse])
def list_doctors(
    q: Optional[str] = Query(None, description="Matches name or specialization"),
    specialization: Optional[str] = Query(None),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    return [DoctorResponse.model_validate(d) for d in doctors.browse(q, specialization)]


@router.get("/search", response_model=List[DoctorResponse])
def search_doctors(
    specialization: Optional[str] = Query(None),
    max_fee: Optional[float] = Query(None, ge=0),
    min_rating: Optional[float] = Query(None, ge=1, le=5),
    min_experience: Optional[int] = Query(None, ge=0),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    results = doctors.search(specialization, max_fee, min_rating, min_experience)
    return [DoctorResponse.model_validate(d) for d in results]


@router.get("/featured", response_model=List[DoctorResponse])
def featured_doctors(
    limit: int = Query(4, ge=1, le=20),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    return [DoctorResponse.model_validate(d) for d in doctors.featured(limit)]


@router.get("/me", response_model=OwnDoctorProfileResponse)
def get_own_profile(
    current_user: str = Depends(get_current_user),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    doctor = doctors.own_profile(current_user)
    if doctor:
        return OwnDoctorProfileResponse(exists=True, doctor=DoctorResponse.model_validate(doctor))
    return OwnDoctorProfileResponse(exists=False, draft=DoctorBase.model_validate(doctors.draft_for(current_user)))


@router.put("/me", response_model=DoctorResponse)
def save_own_profile(
    body: DoctorCreate,
    current_user: str = Depends(get_current_user),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    return DoctorResponse.model_validate(doctors.save_own_profile(current_user, _profile_data(body)))


@router.post("/", response_model=DoctorResponse, status_code=201)
def add_doctor(
    body: DoctorCreate,
    current_user: str = Depends(get_current_user),
    doctors: DoctorsService = Depends(get_doctors_service),
):
    return DoctorResponse.model_validate(doctors.add_doctor(current_user, _profile_data(body)))


@router.get("/{doctor_id}", response_model=DoctorResponse)
def get_doctor(doctor_id: int, doctors: DoctorsService = Depends(get_doctors_service)):
    return DoctorResponse.model_validate(doctors.get(doctor_id))
