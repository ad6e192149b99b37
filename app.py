# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db safedose.db
  python app.py calcular -m dipirona -d 500 --massa 1000 --volume 10 -f comprimido
  python app.py historico listar
  python app.py historico remover 1718000000000
  python app.py tui
"""

from safedose.adapters.cli import main

if __name__ == "__main__":
    main()
