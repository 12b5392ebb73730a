import math


class PaginatePage:
    def offset(self, page: int, per_page: int) -> int:
        return (page - 1) * per_page

    def meta(self, page: int, per_page: int, total: int) -> dict:
        total_pages = math.ceil(total / per_page) if per_page else 0
        return {
            "page": page,
            "limit": per_page,
            "total": total,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrev": page > 1,
        }
