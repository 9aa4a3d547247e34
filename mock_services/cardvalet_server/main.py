from fastapi import FastAPI, Request

app = FastAPI(title="Mock Card Valet Server", version="1.0.0")

# Subscriber ref ids ending in "-9" are rejected, like an unenrolled card
REJECTED_SUFFIX = "-9"


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/rws/CardControlRWS_V0103/getSSOInfo")
async def get_sso_info(request: Request):
    body = await request.json()
    ref_id = body.get("subscriberRefID", "")
    response = {key: body.get(key) for key in (
        "schemaVersion", "clientId", "system", "clientApplicationName",
        "clientVersion", "clientVendorName", "clientAuditId")}
    response["systemRecordIdentifier"] = None
    response["subscriberRefId"] = ref_id
    if not ref_id or ref_id.endswith(REJECTED_SUFFIX):
        response["csStatus"] = {"statusCode": "2", "statusDesc": "SUBSCRIBER NOT FOUND"}
        return response
    response["csStatus"] = {"statusCode": "0", "statusDesc": "SUCCESSFUL"}
    response["ssoPayload"] = f"mock-sso-{body.get('ssoDeviceId', '')}-{body.get('clientAuditId', '')}"
    return response
