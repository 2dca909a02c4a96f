"""
Produccion API — Batch Scheduling & Weighing Schemas
====================================================

What:  Models for scheduling batches, tracking them, canceling them, and the
       weigh-in request/response of POST /peso.
"""

import base64
import binascii
from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import Field, field_validator, model_validator

from produccion.schemas.common import ApiModel


# ══════════════════════════════════════════════════════════════════════════
# Scheduling
# ══════════════════════════════════════════════════════════════════════════


class ProgramarLotesRequest(ApiModel):
    """Body of POST /lotesprogramados/programar."""
    codigo_producto: str = Field(alias="CodigoProducto", min_length=1, max_length=30)
    fecha_programada: date = Field(alias="FechaProgramada")
    usuario_programo: str = Field(alias="UsuarioProgramo", min_length=1, max_length=50)
    cantidad_lotes: int = Field(alias="CantidadLotes", gt=0)
    peso_por_lote: float = Field(alias="PesoPorLote", gt=0)
    unidad_medida_id: Optional[int] = Field(default=None, alias="UnidadMedidaId")


class LotePendiente(ApiModel):
    consecutivo: int = Field(alias="Consecutivo")
    producto_terminado: str = Field(alias="ProductoTerminado")
    lote: str = Field(alias="Lote")
    fecha_programada: Optional[date] = Field(default=None, alias="FechaProgramada")
    linea_mezclado: Optional[str] = Field(default=None, alias="LineaMezclado")
    produccion_inicio: Optional[datetime] = Field(default=None, alias="ProduccionInicio")


class DetalleLoteLinea(ApiModel):
    secuencia: int = Field(alias="Secuencia")
    ingrediente: str = Field(alias="Ingrediente")
    peso_objetivo: float = Field(alias="PesoObjetivo")
    porcentaje: Optional[float] = Field(default=None, alias="Porcentaje")
    tara: Optional[float] = Field(default=None, alias="Tara")
    peso: Optional[float] = Field(default=None, alias="Peso")
    tiempo_de_pesado: Optional[datetime] = Field(default=None, alias="TiempoDePesado")
    etiqueta: Optional[str] = Field(default=None, alias="Etiqueta")
    tiene_foto: bool = Field(default=False, alias="TieneFoto")


class DetalleLoteResponse(ApiModel):
    detalle: List[DetalleLoteLinea]
    max_secuencia: int = Field(alias="maxSecuencia")


class EstadoLoteResponse(ApiModel):
    """Status of one batch: its control row plus the number of pending lines."""
    consecutivo: int = Field(alias="Consecutivo")
    producto_terminado: str = Field(alias="ProductoTerminado")
    lote: str = Field(alias="Lote")
    cancelado: bool = Field(alias="Cancelado")
    fecha_programada: Optional[date] = Field(default=None, alias="FechaProgramada")
    linea_mezclado: Optional[str] = Field(default=None, alias="LineaMezclado")
    produccion_inicio: Optional[datetime] = Field(default=None, alias="ProduccionInicio")
    produccion_final: Optional[datetime] = Field(default=None, alias="ProduccionFinal")
    lote_completado: bool = Field(alias="LoteCompletado")
    pendientes: int = Field(alias="Pendientes")


class CancelarLotesRequest(ApiModel):
    """
    Body of POST /lotesprogramados/cancelar.

    Either a single Consecutivo, or an inclusive Desde..Hasta range.
    """
    consecutivo: Optional[int] = Field(default=None, alias="Consecutivo", gt=0)
    desde: Optional[int] = Field(default=None, alias="Desde", gt=0)
    hasta: Optional[int] = Field(default=None, alias="Hasta", gt=0)

    @model_validator(mode="after")
    def validate_target(self) -> "CancelarLotesRequest":
        if self.consecutivo is not None:
            if self.desde is not None or self.hasta is not None:
                raise ValueError("Indique Consecutivo o el rango Desde/Hasta, no ambos")
            return self
        if self.desde is None or self.hasta is None:
            raise ValueError("Indique Consecutivo o el rango Desde/Hasta")
        if self.desde > self.hasta:
            raise ValueError("Desde no puede ser mayor que Hasta")
        return self

    @property
    def rango(self) -> tuple:
        if self.consecutivo is not None:
            return self.consecutivo, self.consecutivo
        return self.desde, self.hasta


class CancelarLotesResponse(ApiModel):
    mensaje: str
    cancelados: int


# ══════════════════════════════════════════════════════════════════════════
# Weighing
# ══════════════════════════════════════════════════════════════════════════


class PesoRequest(ApiModel):
    """
    Body of POST /peso.

    The six identifying/measurement fields are required. FotoBase64 may be a
    bare base64 string or a data URI (`data:image/jpeg;base64,...`).
    """
    consecutivo: int = Field(alias="Consecutivo")
    producto_terminado: str = Field(alias="ProductoTerminado", min_length=1)
    secuencia: int = Field(alias="Secuencia", ge=1)
    ingrediente: str = Field(alias="Ingrediente", min_length=1)
    tara: float = Field(alias="Tara", ge=0)
    peso: float = Field(alias="Peso", ge=0)
    etiqueta: Optional[str] = Field(default=None, alias="Etiqueta", max_length=100)
    foto_base64: Optional[str] = Field(default=None, alias="FotoBase64")

    @field_validator("ingrediente", mode="before")
    @classmethod
    def coerce_ingrediente(cls, v: Union[str, int]) -> Union[str, int]:
        # Stations send the ingredient id either as "5" or 5
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("foto_base64")
    @classmethod
    def validate_foto(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        _decode_base64(v)
        return v

    def foto_bytes(self) -> Optional[bytes]:
        """Decoded photo, or None when no photo was sent."""
        if self.foto_base64 is None:
            return None
        return _decode_base64(self.foto_base64)


def _decode_base64(value: str) -> bytes:
    payload = value.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    # MIME-wrapped payloads carry CRLF every 76 characters
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("FotoBase64 no es base64 válido")


class SiguienteLinea(ApiModel):
    """The next pending detail line the operator should weigh."""
    secuencia: int = Field(alias="Secuencia")
    ingrediente: str = Field(alias="Ingrediente")
    peso_objetivo: float = Field(alias="PesoObjetivo")
    porcentaje: Optional[float] = Field(default=None, alias="Porcentaje")


class PesoResponse(ApiModel):
    ok: bool = True
    mensaje: str = "Peso registrado"
    remaining: int
    completed: bool
    siguiente: Optional[SiguienteLinea] = Field(default=None, alias="next")
