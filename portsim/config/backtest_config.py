from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from portsim.backtest.core.enums import CurrencyCode


class ComponentConfig(BaseModel):
    """
    注册式组件声明：type -> registry key, params -> 构造参数（opaque）
    """

    type: str
    params: Dict[str, Any] = Field(default_factory=dict)


class StrategyConfig(BaseModel):
    name: str
    type: str

    # asset -> listing currency
    assets: Dict[str, CurrencyCode] = Field(..., min_length=1)

    # currency -> initial cash
    cash: Dict[CurrencyCode, Decimal] = Field(default_factory=dict)

    position_sizer: ComponentConfig
    order_pricing: ComponentConfig = Field(
        default_factory=lambda: ComponentConfig(type="close_price")
    )

    # strategy 参数（opaque，按 type 解释）
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("assets", mode="before")
    @classmethod
    def _upper_asset_currencies(cls, v):
        if isinstance(v, dict):
            return {k: str(c).strip().upper() for k, c in v.items()}
        return v

    @field_validator("cash", mode="before")
    @classmethod
    def _upper_cash_currencies(cls, v):
        if isinstance(v, dict):
            return {str(c).strip().upper(): amt for c, amt in v.items()}
        return v


class BacktestConfig(BaseModel):
    """
    BacktestConfig（FINAL / FROZEN）

    语义：
      - 回测“实验定义”：数据、区间、策略、撮合参数
      - strategy.name 全局唯一
    """

    name: str = "default"
    base_currency: CurrencyCode = CurrencyCode.USD

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    market_data_path: str
    fx_rates_path: Optional[str] = None
    trading_calendar: Optional[List[date]] = None
    output_dir: str = "output/backtest"

    commission_rate: Decimal = Decimal("0.001")

    allocator: ComponentConfig = Field(
        default_factory=lambda: ComponentConfig(type="self_funded")
    )
    strategies: List[StrategyConfig] = Field(..., min_length=1)
    benchmark: Optional[StrategyConfig] = None

    @field_validator("base_currency", mode="before")
    @classmethod
    def _upper_base(cls, v):
        return str(v).strip().upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _check(self):
        names = [s.name for s in self.strategies]
        dup = sorted({n for n in names if names.count(n) > 1})
        if dup:
            raise ValueError(f"duplicate strategy names: {dup}")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")
        if self.commission_rate < 0:
            raise ValueError(f"commission_rate must be >= 0, got {self.commission_rate}")
        return self
