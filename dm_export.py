import gzip
import io
import json

import dm_state as st
from dm_sessions import Session


def export_session(session: Session, expires: int | None = None) -> tuple[str | None, str | None]:
    """
    Upload a gzipped JSON snapshot of one record to S3 (private) and return
    (presigned_url, s3_key). Returns (None, None) when S3 is not configured
    or the upload fails.
    """
    if not st.s3 or not st.S3_BUCKET:
        return None, None
    if expires is None:
        expires = st.EXPORT_URL_EXPIRES
    try:
        body = json.dumps(session.to_dict(), separators=(",", ":")).encode("utf-8")
        buf = io.BytesIO(gzip.compress(body))
        key = f"{st.S3_PREFIX}record_{session.id}.json.gz"
        st.s3.upload_fileobj(
            buf,
            st.S3_BUCKET,
            key,
            ExtraArgs={
                "ContentType": "application/json",
                "ContentEncoding": "gzip",
                "ACL": "private",
            },
        )
        url = st.s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": st.S3_BUCKET, "Key": key},
            ExpiresIn=expires,
        )
        global_host = ".s3.amazonaws.com"
        regional_host = f".s3.{st.AWS_REGION}.amazonaws.com"
        if global_host in url and regional_host not in url:
            url = url.replace(global_host, regional_host)
        print(f"[Export/S3] Uploaded {session.id} -> {key}")
        return url, key
    except Exception as e:
        print(f"[Export/S3] Failed: {e}")
        return None, None
