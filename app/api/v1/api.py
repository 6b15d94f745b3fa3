from fastapi import APIRouter
from app.api.v1.endpoints import events, participants, qr, attendance, maintenance

api_router = APIRouter()

# Register routes
api_router.include_router(events.router, prefix="/events", tags=["Events"])
api_router.include_router(participants.router, prefix="/participants", tags=["Participants"])
api_router.include_router(qr.router, prefix="/attendance/qr", tags=["QR Codes"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])
