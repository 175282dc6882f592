import logging

from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from graphene_django.views import GraphQLView
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name='dispatch')
class AuthenticatedGraphQLView(GraphQLView):
    """
    GraphQL endpoint authenticated with the same Bearer JWT as the REST API.

    A missing or invalid token leaves the request anonymous; resolvers
    decide what anonymous users may see.
    """

    def dispatch(self, request, *args, **kwargs):
        try:
            result = JWTAuthentication().authenticate(request)
        except AuthenticationFailed as e:
            logger.debug(f"GraphQL request with rejected token: {str(e)}")
            result = None
        if result is not None:
            request.user, _ = result
        return super().dispatch(request, *args, **kwargs)
