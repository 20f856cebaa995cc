"""
Browser redirect target for the external provider (GitHub) login.
"""
import html
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

logger = logging.getLogger(__name__)

router = APIRouter()

SUCCESS_PAGE = """
<html>
    <body>
        <h1>Authentication Successful!</h1>
        <p>You can now close this window and return to SpecManager.</p>
        <script>
            setTimeout(function() {
                window.close();
            }, 2000);
        </script>
    </body>
</html>
"""

FAILURE_PAGE = """
<html>
    <body>
        <h1>Authentication Failed</h1>
        <p>Error: {error}</p>
        <p>You can close this window.</p>
    </body>
</html>
"""


@router.get("/oauth-callback", response_class=HTMLResponse)
async def oauth_callback(request: Request):
    """Hand the redirect (token, state, error) to the URI handler"""
    services = request.app.state.services
    accepted = await services.uri_handler.handle_uri(request.url.path, dict(request.query_params))
    if accepted:
        return HTMLResponse(SUCCESS_PAGE)

    error = services.session.coordinator.last_error or "Unknown error"
    return HTMLResponse(FAILURE_PAGE.format(error=html.escape(error)), status_code=400)
