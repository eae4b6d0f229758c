def page_arg(value):
    """Convierte el parametro ?page= a entero >= 0"""
    try:
        return max(int(value or 0), 0)
    except (TypeError, ValueError):
        return 0


def paginate(query, page, per_page):
    """
    Pagina una query de Flask-SQLAlchemy

    Args:
        query: Model.query ya filtrada y ordenada
        page: pagina (empieza en 0, como el "cargar mas" del directorio)
        per_page: tamaño de pagina

    Returns:
        dict: items, total, page, per_page, pages, has_more
    """
    page = page_arg(page)
    pagination = query.paginate(page=page + 1, per_page=per_page, error_out=False)
    return {
        'items': pagination.items,
        'total': pagination.total,
        'page': page,
        'per_page': per_page,
        'pages': pagination.pages,
        'has_more': pagination.has_next,
    }
