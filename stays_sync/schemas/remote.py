"""
Typed views over Stays.net payloads.

Every field is optional apart from the identity key: the API omits blocks freely
and has changed key names between versions. Unknown keys are kept (``extra="allow"``)
so the raw payload survives a parse/dump cycle.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RemoteModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)


class RemoteSubtotal(RemoteModel):
    total: Optional[float] = Field(None, alias="_f_total")
    night_price: Optional[float] = Field(None, alias="_f_nightPrice")


class RemotePrice(RemoteModel):
    """Price block; the same amount may appear under several representations."""

    currency: Optional[str] = None
    total: Optional[float] = Field(None, alias="_f_total", description="Fee-inclusive total")
    expected: Optional[float] = Field(None, alias="_f_expected", description="Pre-fee total")
    hosting_details: Optional[RemoteSubtotal] = Field(None, alias="hostingDetails")
    extras_details: Optional[RemoteSubtotal] = Field(None, alias="extrasDetails")
    value: Optional[float] = Field(None, description="Legacy flat price")
    cleaning: Optional[float] = Field(None, description="Legacy cleaning fee")
    extras: Optional[float] = Field(None, description="Legacy extras fee")


class RemoteStats(RemoteModel):
    nights: Optional[int] = None
    adults: Optional[int] = None
    children: Optional[int] = None
    babies: Optional[int] = None
    total_paid: Optional[float] = Field(None, alias="_f_totalPaid")


class RemoteGuest(RemoteModel):
    name: Optional[str] = None
    email: Optional[str] = None
    primary: Optional[bool] = None
    type: Optional[str] = None


class RemoteGuestsDetails(RemoteModel):
    name: Optional[str] = None
    guests: list[RemoteGuest] = Field(default_factory=list, alias="list")


class RemotePartner(RemoteModel):
    partner_id: Optional[str] = Field(None, alias="_id")
    name: Optional[str] = None


class RemoteBooking(RemoteModel):
    """Reservation record from /booking/reservations (summary or detail)."""

    reservation_id: str = Field(..., alias="_id", description="External reservation id")
    booking_code: Optional[str] = Field(None, alias="id", description="Human booking code")
    listing_id: Optional[str] = Field(None, alias="_idlisting")
    client_id: Optional[str] = Field(None, alias="_idclient")
    check_in_date: Optional[str] = Field(None, alias="checkInDate")
    check_in_time: Optional[str] = Field(None, alias="checkInTime")
    check_out_date: Optional[str] = Field(None, alias="checkOutDate")
    check_out_time: Optional[str] = Field(None, alias="checkOutTime")
    creation_date: Optional[str] = Field(None, alias="creationDate")
    type: Optional[str] = None
    status: Optional[str] = None
    source: Optional[str] = None
    channel_name: Optional[str] = Field(None, alias="channelName")
    partner: Optional[RemotePartner] = None
    guests: Optional[int] = None
    stats: Optional[RemoteStats] = None
    price: Optional[RemotePrice] = None
    guests_details: Optional[RemoteGuestsDetails] = Field(None, alias="guestsDetails")


class RemoteAddress(RemoteModel):
    street: Optional[str] = None
    street_number: Optional[str] = Field(None, alias="streetNumber")
    region: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    state_code: Optional[str] = Field(None, alias="stateCode")
    country_code: Optional[str] = Field(None, alias="countryCode")
    zip: Optional[str] = None


class RemoteLatLng(RemoteModel):
    lat: Optional[float] = Field(None, alias="_f_lat")
    lng: Optional[float] = Field(None, alias="_f_lng")


class RemoteListing(RemoteModel):
    """Listing record from /content/listings (catalogue or detail)."""

    listing_id: str = Field(..., alias="_id", description="External listing id")
    code: Optional[str] = Field(None, alias="id")
    internal_name: Optional[str] = Field(None, alias="internalName")
    name: Optional[str] = None
    title: Optional[dict[str, Optional[str]]] = Field(None, alias="_mstitle")
    address: Optional[Union[RemoteAddress, str]] = None
    rooms: Optional[int] = Field(None, alias="_i_rooms")
    beds: Optional[int] = Field(None, alias="_i_beds")
    bathrooms: Optional[float] = Field(None, alias="_f_bathrooms")
    square_meters: Optional[float] = Field(None, alias="_f_square")
    max_guests: Optional[int] = Field(None, alias="_i_maxGuests")
    lat_lng: Optional[RemoteLatLng] = Field(None, alias="latLng")
    main_image: Optional[dict[str, Any]] = Field(None, alias="_t_mainImageMeta")
    status: Optional[str] = None
    currency: Optional[str] = Field(None, alias="deff_curr")
    amenities: list[dict[str, Any]] = Field(default_factory=list)


class RemoteClient(RemoteModel):
    """Guest record from /booking/clients."""

    client_id: str = Field(..., alias="_id")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    nationality: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
