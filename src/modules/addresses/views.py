"""Address book API views.

Every route is scoped to the authenticated owner; an address belonging
to someone else answers exactly like one that does not exist.
"""

from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.addresses.dtos import CreateAddressDTO
from modules.addresses.exceptions import AddressNotFound, DefaultAddressConflict
from modules.addresses.models import Address
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.serializers import AddressSerializer
from modules.addresses.services import AddressService
from modules.core.authentication import resolve_owner_id
from modules.core.exceptions import invalid_input_response


class AddressViewSet(GenericViewSet):
    """GET/POST /addresses/, DELETE /addresses/{pk}/, PUT /addresses/{pk}/default/."""

    queryset = Address.objects.none()
    serializer_class = AddressSerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AddressService(repository=AddressDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/addresses/"""
        owner_id = resolve_owner_id(request.user)
        addresses = self._service.list_addresses(owner_id)
        return Response(AddressSerializer(addresses, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/addresses/"""
        owner_id = resolve_owner_id(request.user)
        try:
            dto = CreateAddressDTO.model_validate(request.data)
        except PydanticValidationError as exc:
            return invalid_input_response(exc)

        try:
            address = self._service.add_address(owner_id, dto)
        except DefaultAddressConflict as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(
            AddressSerializer(address).data,
            status=status.HTTP_201_CREATED,
        )

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/addresses/{pk}/"""
        owner_id = resolve_owner_id(request.user)
        try:
            self._service.remove_address(owner_id, pk or "")
        except AddressNotFound:
            return Response(
                {"detail": "Address not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except DefaultAddressConflict as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put"], url_path="default")
    def set_default(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/addresses/{pk}/default/"""
        owner_id = resolve_owner_id(request.user)
        try:
            address = self._service.set_default(owner_id, pk or "")
        except AddressNotFound:
            return Response(
                {"detail": "Address not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except DefaultAddressConflict as exc:
            return Response(
                {"detail": str(exc)},
                status=status.HTTP_409_CONFLICT,
            )
        return Response(AddressSerializer(address).data)
