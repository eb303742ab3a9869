"""
Dashboard statistics response.
"""

from pydantic import BaseModel


class DashboardStats(BaseModel):
    totalBookings: int
    pendingBookings: int
    confirmedBookings: int
    todayBookings: int
    activeMembers: int
    studioUtilization: int
    monthlyRevenue: int
    weeklyGrowth: float
