"""Endpoints consumed by the map client."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from flyby.models.api import (
    ClosestFlightResponse,
    FlightListResponse,
    LocationUpdate,
    LocationUpdateResponse,
    RecenterRequest,
    SearchRequest,
    SelectionRequest,
    SelectionResponse,
)
from flyby.models.flight import FlightState
from flyby.services.tracker import FlightTracker

router = APIRouter(prefix="/api/v1", tags=["flights"])

logger = logging.getLogger("flyby.api.flights")


def get_tracker(request: Request) -> FlightTracker:
    return request.app.state.tracker


def _selection(tracker: FlightTracker) -> SelectionResponse:
    return SelectionResponse(
        flight=tracker.selected_flight(),
        details=tracker.details,
        path=tracker.selected_path(),
    )


@router.get("/flights", response_model=FlightListResponse, summary="Flights to draw")
async def list_flights(tracker: FlightTracker = Depends(get_tracker)) -> FlightListResponse:
    flights = tracker.display_flights()
    return FlightListResponse(count=len(flights), flights=flights)


@router.get(
    "/flights/closest",
    response_model=ClosestFlightResponse,
    summary="Closest flight to the viewer",
)
async def closest_flight(
    tracker: FlightTracker = Depends(get_tracker),
) -> ClosestFlightResponse:
    closest = tracker.closest_flight()
    if closest is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no flights nearby")
    flight, distance = closest
    return ClosestFlightResponse(flight=flight, distance_km=distance)


@router.get("/flights/{flight_id}", response_model=FlightState, summary="One flight")
async def get_flight(
    flight_id: str, tracker: FlightTracker = Depends(get_tracker)
) -> FlightState:
    flight = tracker.get_flight(flight_id)
    if flight is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown flight")
    return flight


@router.post("/location", response_model=LocationUpdateResponse, summary="Viewer location")
async def update_location(
    update: LocationUpdate, tracker: FlightTracker = Depends(get_tracker)
) -> LocationUpdateResponse:
    restarted = tracker.update_location(update.latitude, update.longitude)
    return LocationUpdateResponse(restarted=restarted, poll_center=tracker.poll_center)


@router.post("/view", response_model=LocationUpdateResponse, summary="Move the polling area")
async def recenter(
    request: RecenterRequest, tracker: FlightTracker = Depends(get_tracker)
) -> LocationUpdateResponse:
    restarted = tracker.recenter(request.latitude, request.longitude)
    return LocationUpdateResponse(restarted=restarted, poll_center=tracker.poll_center)


@router.get("/selection", response_model=SelectionResponse, summary="Current selection")
async def read_selection(tracker: FlightTracker = Depends(get_tracker)) -> SelectionResponse:
    return _selection(tracker)


@router.post("/selection", response_model=SelectionResponse, summary="Select a flight")
async def select_flight(
    request: SelectionRequest, tracker: FlightTracker = Depends(get_tracker)
) -> SelectionResponse:
    if tracker.get_flight(request.flight_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="unknown flight")
    applied = await tracker.select(request.flight_id)
    if not applied:
        logger.debug("Selection of %s superseded before data arrived", request.flight_id)
    return _selection(tracker)


@router.delete(
    "/selection",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Clear the selection",
)
async def clear_selection(tracker: FlightTracker = Depends(get_tracker)) -> None:
    tracker.clear_selection()


@router.post("/search", response_model=SelectionResponse, summary="Find a flight")
async def search_flight(
    request: SearchRequest, tracker: FlightTracker = Depends(get_tracker)
) -> SelectionResponse:
    flight = await tracker.search(request.query)
    if flight is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="no match")
    return _selection(tracker)
