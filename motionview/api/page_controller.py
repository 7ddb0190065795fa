"""HTML page for the viewer."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from jinja2 import Template

from ..domain.exceptions import CardNotFoundError
from ..services.config_loader import QueryMode
from ..services.gallery_controller import GalleryController
from ..services.query_builder import DateMode, SearchForm
from .gallery_routes import get_controller, search_form

logger = logging.getLogger(__name__)

router = APIRouter(tags=["page"])

_SEARCH_PARAMS = {"keywords", "date_mode", "date", "start", "end"}


def render_page(controller: GalleryController) -> str:
    """Render the full viewer page for the controller's current state."""
    return PAGE_TEMPLATE.render(
        form=controller.form,
        date_modes=list(DateMode),
        structured=controller.config.query_mode == QueryMode.STRUCTURED,
        grid=controller.grid,
        modal=controller.modal.state,
        labels=controller.labels,
    )


@router.get("/", response_class=HTMLResponse)
async def page(
    request: Request,
    form: SearchForm = Depends(search_form),
    controller: GalleryController = Depends(get_controller),
) -> HTMLResponse:
    """Show the gallery.

    With search parameters the page runs that query first; the very first
    visit without parameters runs the default query for today.
    """
    if _SEARCH_PARAMS & set(request.query_params):
        await controller.submit(form)
    elif controller.generation == 0:
        await controller.submit(controller.initial_form())
    return HTMLResponse(render_page(controller))


@router.post("/cards/{card_index}/open")
async def open_card_page(
    card_index: int,
    controller: GalleryController = Depends(get_controller),
):
    try:
        controller.open_card(card_index)
    except CardNotFoundError as e:
        logger.warning(f"Ignoring click on missing card: {e}")
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/modal/close")
async def close_modal_page(
    controller: GalleryController = Depends(get_controller),
):
    controller.close_modal()
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Motion Events</title>
  <link rel="stylesheet" href="https://cdnjs.cloudflare.com/ajax/libs/font-awesome/6.5.1/css/all.min.css">
  <style>
    body { background: #111; color: #ddd; font-family: sans-serif; }
    #imageGrid { display: flex; flex-wrap: wrap; gap: 10px; }
    .image-wrapper { position: relative; }
    .image-wrapper button { border: 0; padding: 0; background: none; cursor: pointer; }
    .image-wrapper img { width: 240px; border-radius: 4px; }
    .icons { position: absolute; top: 4px; right: 6px; }
    .objectIcon { margin-left: 4px; }
    .placeholder { color: #aaa; text-align: center; width: 100%; }
    .placeholder.error { color: red; }
    #myModal { position: fixed; inset: 0; background: rgba(0, 0, 0, 0.8); }
    .modal-content { margin: 5% auto; width: 70%; }
    .infoLabel { display: inline-block; margin-right: 10px; }
  </style>
</head>
<body>
  <form method="get" action="/">
    <input id="promptInput" name="keywords" value="{{ form.keywords }}" autofocus>
    {% if structured %}
    <input type="datetime-local" name="start" value="{{ form.start or '' }}">
    <input type="datetime-local" name="end" value="{{ form.end or '' }}">
    {% else %}
    <select id="quickDate" name="date_mode">
      {% for mode in date_modes %}
      <option value="{{ mode.value }}"{% if mode == form.date_mode %} selected{% endif %}>{{ mode.value }}</option>
      {% endfor %}
    </select>
    {% if form.date_picker_visible %}
    <input id="datePicker" type="date" name="date" value="{{ form.picked_date or '' }}">
    {% endif %}
    {% endif %}
    <button type="submit">Search</button>
  </form>
  {% if grid.time_start and grid.time_end %}
  <p class="range">{{ grid.time_start }} &ndash; {{ grid.time_end }}{% if grid.tags %} ({{ grid.tags | join(", ") }}){% endif %}</p>
  {% endif %}
  <div id="imageGrid">
    {% if grid.placeholder %}
    <p class="placeholder{% if grid.placeholder.is_error() %} error{% endif %}">{{ grid.placeholder.message }}</p>
    {% else %}
    {% for card in grid.cards %}
    <div class="image-wrapper">
      <form method="post" action="/cards/{{ loop.index0 }}/open">
        <button type="submit"><img src="{{ card.image_url }}" style="box-shadow: 0 0 6px 2px {{ card.color }}"></button>
      </form>
      <div class="icons">
        {% for icon in card.icons %}<i class="{{ icon.icon }} objectIcon" title="{{ icon.label }}"></i>{% endfor %}
      </div>
    </div>
    {% endfor %}
    {% endif %}
  </div>
  {% if modal.is_open %}
  <div id="myModal">
    <div class="modal-content">
      <form method="post" action="/modal/close"><button class="close" type="submit">&times;</button></form>
      <video id="videoPlayer" src="{{ modal.video_url }}" poster="{{ modal.poster_url }}" controls autoplay width="100%"></video>
      <div id="eventInfo">
        {% for label in labels %}<label class="infoLabel {{ label.css_class or '' }}">{{ label.text }}</label>{% endfor %}
      </div>
    </div>
  </div>
  {% endif %}
</body>
</html>
"""

PAGE_TEMPLATE = Template(_TEMPLATE, autoescape=True)
