"""
Mapeos FAST2 -> Directus por entidad.

Este es el punto recomendado para tener "control total" sobre:
- que columnas existen en Directus
- desde que ruta anidada de FAST2 se lee cada columna
- que campos se normalizan (fechas) o se guardan como JSON opaco

Mantener alineado con las colecciones fast2_fastigheter y fast2_arbetsordrar.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from fast2_sync.domain.entities import EntityType
from fast2_sync.shared.utils.date_utils import normalize_fast2_date

Transform = Callable[[Any], Any]


@dataclass(frozen=True)
class FieldMapping:
    """
    Define el mapeo de una ruta FAST2 a un campo Directus.

    - target: nombre del campo en Directus
    - source_path: ruta anidada en el registro FAST2 ("detalj.vaning.id")
    - transform: funcion opcional, solo se aplica si el valor existe
    - default: valor cuando la ruta no existe (None salvo casos puntuales)
    - as_json: el subobjeto se guarda como texto JSON (columna json en Directus)
    """

    target: str
    source_path: str
    transform: Optional[Transform] = None
    default: Any = None
    as_json: bool = False

    @property
    def path(self) -> tuple[str, ...]:
        return tuple(self.source_path.split("."))


def _date(target: str, source_path: str) -> FieldMapping:
    return FieldMapping(target=target, source_path=source_path, transform=normalize_fast2_date)


def _json(target: str, source_path: str) -> FieldMapping:
    return FieldMapping(target=target, source_path=source_path, as_json=True)


PROPERTY_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("id", "id"),
    # Adress
    FieldMapping("adress", "adress.adress"),
    FieldMapping("lghnummer", "adress.lghnummer"),
    FieldMapping("postnummer", "adress.postnummer"),
    FieldMapping("postort", "adress.postort"),
    FieldMapping("xkoord", "adress.xkoord"),
    FieldMapping("ykoord", "adress.ykoord"),
    # Detalj
    FieldMapping("vaning_id", "detalj.vaning.id"),
    FieldMapping("vaning_beskrivning", "detalj.vaning.beskrivning"),
    FieldMapping("vaning_nummer", "detalj.vaning.nummer"),
    FieldMapping("hiss", "detalj.hiss", default=False),
    FieldMapping("yta", "detalj.yta"),
    FieldMapping("anmarkning", "detalj.anmarkning"),
    FieldMapping("text", "detalj.text"),
    FieldMapping("hyressparr", "detalj.hyressparr"),
    FieldMapping("hyressparr_anmarkning", "detalj.hyressparrAnmarkning"),
    _date("besiktigad_datum", "detalj.besiktigadDatum"),
    # Typ
    FieldMapping("objekts_otyp", "typ.objektsOTyp"),
    FieldMapping("objekts_typ", "typ.objektsTyp"),
    FieldMapping("typ_beskrivning", "typ.beskrivning"),
    # Kunder
    FieldMapping("kund_id1", "kunder.id1"),
    FieldMapping("kund_id2", "kunder.id2"),
    # Relationer
    FieldMapping("foretag_nr", "relationer.foretagNr"),
    FieldMapping("fastighet_nr", "relationer.fastighetNr"),
    FieldMapping("byggnad_nr", "relationer.byggnadNr"),
    FieldMapping("sokomrade1_nr", "relationer.sokomrade1Nr"),
    FieldMapping("sokomrade2_nr", "relationer.sokomrade2Nr"),
    FieldMapping("sokomrade3_nr", "relationer.sokomrade3Nr"),
    FieldMapping("adminomrade_nr", "relationer.adminomradeNr"),
    FieldMapping("felomrade_nr", "relationer.felomradeNr"),
    FieldMapping("underhallomrade_nr", "relationer.underhallomradeNr"),
    FieldMapping("ingar_i", "relationer.ingarI"),
)


WORK_ORDER_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("id", "id"),
    FieldMapping("externt_id", "externtId"),
    FieldMapping("externt_nr", "externtNr"),
    FieldMapping("objekt_id", "objekt.id"),
    FieldMapping("kund_id", "kund.id"),
    # Tipo, estado y prioridad
    FieldMapping("arbetsorder_typ_kod", "arbetsorderTyp.arbetsordertypKod"),
    FieldMapping("arbetsorder_typ_besk", "arbetsorderTyp.arbetsordertypBesk"),
    FieldMapping("status_kod", "status.statusKod"),
    FieldMapping("prio_kod", "prio.prioKod"),
    FieldMapping("prio_besk", "prio.prioBesk"),
    # Textos
    FieldMapping("beskrivning", "information.beskrivning"),
    FieldMapping("kommentar", "information.kommentar"),
    FieldMapping("anmarkning", "information.anmarkning"),
    FieldMapping("atgard", "information.atgard"),
    # Fechas (YYYYMMDD -> YYYY-MM-DD); datum_modifierad ya viene como timestamp
    _date("datum_registrerad", "registrerad.datumRegistrerad"),
    _date("datum_bestalld", "bestalld.datumBestalld"),
    _date("datum_accepterad", "accepterad.datumAccepterad"),
    _date("datum_utford", "utford.datumUtford"),
    FieldMapping("datum_modifierad", "modifierad.datumModifierad"),
    # Utförare y anmälare
    FieldMapping("utforare_id", "utforare.id"),
    FieldMapping("utforare_namn", "utforare.namn"),
    FieldMapping("annan_anmalare_namn", "annanAnmalare.namn"),
    FieldMapping("annan_anmalare_epost", "annanAnmalare.epostAdress"),
    FieldMapping("annan_anmalare_telefon", "annanAnmalare.telefon"),
    # Subobjetos complejos como JSON
    _json("bunt", "bunt"),
    _json("utforare", "utforare"),
    _json("utrymme", "utrymme"),
    _json("enhet", "enhet"),
    _json("registrerad", "registrerad"),
    _json("planering", "planering"),
    _json("ekonomi", "ekonomi"),
)


MAPPINGS_BY_ENTITY: dict[EntityType, tuple[FieldMapping, ...]] = {
    EntityType.FASTIGHETER: PROPERTY_MAPPINGS,
    EntityType.ARBETSORDRAR: WORK_ORDER_MAPPINGS,
}
