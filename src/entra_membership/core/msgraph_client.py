"""Microsoft Graph API client wrapper."""

from azure.core.credentials import TokenCredential
from azure.identity import ClientSecretCredential
from msgraph import GraphServiceClient

from entra_membership.core.config import get_graph_credentials

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]


def get_graph_client(
    credential: TokenCredential | None = None,
    scopes: list[str] | None = None,
) -> GraphServiceClient:
    """Build the Graph client used for group membership calls.

    Membership writes need the GroupMember.ReadWrite.All application
    permission; listings only need GroupMember.Read.All.

    Args:
        credential: Azure credential to authenticate with. When None, an
            app-only ClientSecretCredential is built from MS_GRAPH_* env vars.
        scopes: Token scopes, defaults to the Graph ``.default`` scope

    Returns:
        GraphServiceClient bound to the credential
    """
    if credential is None:
        tenant_id, client_id, client_secret = get_graph_credentials()
        credential = ClientSecretCredential(
            tenant_id=tenant_id,
            client_id=client_id,
            client_secret=client_secret,
        )

    return GraphServiceClient(credentials=credential, scopes=scopes or GRAPH_SCOPES)
