from fastapi import Depends, FastAPI, HTTPException, Request, status

from .api_models import DesireLRPRequest, UpdateDesiredLRPRequest
from .bifrost import Bifrost
from .errors import BridgeError, NotFound


def get_bifrost(request: Request) -> Bifrost:
    return request.app.state.bifrost


def create_app(bifrost: Bifrost) -> FastAPI:
    app = FastAPI(title="lrpbridge")
    app.state.bifrost = bifrost

    @app.get("/healthz")
    def healthz():
        return {"status": "healthy"}

    @app.put("/apps/{process_guid}", status_code=status.HTTP_202_ACCEPTED)
    def desire_app(process_guid: str, req: DesireLRPRequest, b: Bifrost = Depends(get_bifrost)):
        if req.process_guid != process_guid:
            raise HTTPException(status_code=400, detail="process_guid in body does not match the URL")
        try:
            b.transfer([req])
        except BridgeError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {}

    @app.post("/apps", status_code=status.HTTP_202_ACCEPTED)
    def desire_apps(reqs: list[DesireLRPRequest], b: Bifrost = Depends(get_bifrost)):
        try:
            b.transfer(reqs)
        except BridgeError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {}

    @app.get("/apps")
    def list_apps(b: Bifrost = Depends(get_bifrost)):
        try:
            infos = b.list()
        except BridgeError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"desired_lrp_scheduling_infos": [i.model_dump() for i in infos]}

    @app.get("/apps/{process_guid}")
    def get_app(process_guid: str, b: Bifrost = Depends(get_bifrost)):
        try:
            lrp = b.get(process_guid)
        except NotFound:
            raise HTTPException(status_code=404, detail=f"app {process_guid!r} not found")
        except BridgeError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"desired_lrp": lrp.model_dump()}

    @app.post("/apps/{process_guid}")
    def update_app(process_guid: str, req: UpdateDesiredLRPRequest, b: Bifrost = Depends(get_bifrost)):
        if req.process_guid != process_guid:
            raise HTTPException(status_code=400, detail="process_guid in body does not match the URL")
        try:
            b.update(req)
        except NotFound:
            raise HTTPException(status_code=404, detail=f"app {process_guid!r} not found")
        except BridgeError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"ok": True}

    return app
