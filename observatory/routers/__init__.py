# API routers package

from observatory.routers.climate import router as climate_router
from observatory.routers.status import router as status_router

# Re-export for easy importing
climate = climate_router
status = status_router
